from __future__ import annotations

from datetime import time

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class GracePeriodStrategy(AttendanceStrategy):
    """Arrival after the standard start but inside the grace window: no penalty."""

    def decide_time_in(self, *, punch: time) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.WITHIN_GRACE,
            note=f"Arrived at {punch.strftime('%H:%M')} within grace period",
        )

    def decide_time_out(self, *, punch: time, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
