"""Policy constants shared by the rule engines.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time
from decimal import Decimal

DEFAULT_TIMEZONE = "Asia/Manila"

STANDARD_START = time(8, 0)
GRACE_CUTOFF = time(8, 10)
STANDARD_END = time(17, 0)
LUNCH_START = time(12, 0)
LUNCH_END = time(13, 0)
LUNCH_BREAK_HOURS = Decimal("1")
STANDARD_DAY_HOURS = Decimal("8")

TARDINESS_SCALE = Decimal("0.0001")
MONEY_SCALE = Decimal("0.01")

# Overtime
OVERTIME_BASE_MULTIPLIER = Decimal("1.25")
OVERTIME_NIGHT_MULTIPLIER = Decimal("1.10")
OVERTIME_WEEKEND_MULTIPLIER = Decimal("1.30")
NIGHT_SHIFT_START_HOUR = 22
NIGHT_SHIFT_END_HOUR = 6
MIN_OVERTIME_MINUTES = 30
MAX_DAILY_OVERTIME_HOURS = Decimal("4")
MAX_WEEKLY_OVERTIME_HOURS = Decimal("20")
DEFAULT_RANKING_LIMIT = 10

# Leave
VACATION_LEAVE_TYPE_ID = 1
SICK_LEAVE_TYPE_ID = 2
EMERGENCY_LEAVE_TYPE_ID = 3
DEFAULT_LEAVE_ALLOCATIONS = {
    VACATION_LEAVE_TYPE_ID: Decimal("15"),
    SICK_LEAVE_TYPE_ID: Decimal("15"),
    EMERGENCY_LEAVE_TYPE_ID: Decimal("5"),
}
DEFAULT_MAX_CARRY_OVER_DAYS = Decimal("5")
UPCOMING_LEAVE_MONTHS = 3
