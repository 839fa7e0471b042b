from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from ..core.constants import GRACE_CUTOFF, STANDARD_END, STANDARD_START
from .strategies.base import AttendanceStrategy
from .strategies.grace_strategy import GracePeriodStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy
from .strategies.undertime_strategy import UndertimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the strategy for a punch from the policy times."""

    standard_start: time = STANDARD_START
    grace_cutoff: time = GRACE_CUTOFF
    standard_end: time = STANDARD_END

    def for_time_in(self, *, punch: time) -> AttendanceStrategy:
        if punch > self.grace_cutoff:
            return LateStrategy()
        if punch > self.standard_start:
            return GracePeriodStrategy()
        return OnTimeStrategy()

    def for_time_out(self, *, punch: time) -> AttendanceStrategy:
        if punch < self.standard_end:
            return UndertimeStrategy()
        return OnTimeStrategy()
