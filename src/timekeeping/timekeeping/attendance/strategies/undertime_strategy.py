from __future__ import annotations

from datetime import time

from ...core.enums import AttendanceStatus, TardinessKind
from .base import AttendanceStrategy, StatusDecision


class UndertimeStrategy(AttendanceStrategy):
    """Departure before the standard end."""

    def decide_time_in(self, *, punch: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ON_TIME)

    def decide_time_out(self, *, punch: time, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.UNDERTIME,
            tardiness=TardinessKind.UNDERTIME,
            note=f"Early departure at {punch.strftime('%H:%M')}",
        )
