from __future__ import annotations

from datetime import time

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class OnTimeStrategy(AttendanceStrategy):
    """Arrival at or before the standard start; departure at or after the standard end."""

    def decide_time_in(self, *, punch: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ON_TIME)

    def decide_time_out(self, *, punch: time, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
