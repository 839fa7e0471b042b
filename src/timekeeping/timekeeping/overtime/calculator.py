from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..common.datetime_utils import round_half_up
from ..core.constants import (
    MONEY_SCALE,
    OVERTIME_BASE_MULTIPLIER,
    OVERTIME_NIGHT_MULTIPLIER,
    OVERTIME_WEEKEND_MULTIPLIER,
)
from .model import OvertimeRequest

_ONE = Decimal("1")


@dataclass(frozen=True)
class OvertimePayCalculator:
    """Premium pay for an overtime request.

    Night and weekend surcharges are added to the base rate, not compounded:
    a weekend night is 1.25 + 0.10 + 0.30 = 1.65.
    """

    base_multiplier: Decimal = OVERTIME_BASE_MULTIPLIER
    night_multiplier: Decimal = OVERTIME_NIGHT_MULTIPLIER
    weekend_multiplier: Decimal = OVERTIME_WEEKEND_MULTIPLIER

    def multiplier(self, request: OvertimeRequest) -> Decimal:
        value = self.base_multiplier
        if request.is_night_shift:
            value += self.night_multiplier - _ONE
        if request.is_weekend:
            value += self.weekend_multiplier - _ONE
        return value

    def premium_pay(self, request: OvertimeRequest, hourly_rate: Decimal) -> Decimal:
        return round_half_up(request.hours * Decimal(hourly_rate) * self.multiplier(request), MONEY_SCALE)

    def base_pay(self, hours: Decimal, hourly_rate: Decimal) -> Decimal:
        return round_half_up(Decimal(hours) * Decimal(hourly_rate) * self.base_multiplier, MONEY_SCALE)
