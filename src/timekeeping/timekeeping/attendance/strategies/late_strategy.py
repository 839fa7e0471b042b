from __future__ import annotations

from datetime import time

from ...core.enums import AttendanceStatus, TardinessKind
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Arrival after the grace cutoff."""

    def decide_time_in(self, *, punch: time) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.LATE,
            tardiness=TardinessKind.LATE,
            note=f"Late arrival at {punch.strftime('%H:%M')}",
        )

    def decide_time_out(self, *, punch: time, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
