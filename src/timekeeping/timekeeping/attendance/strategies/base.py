from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import time
from typing import Optional

from ...core.enums import AttendanceStatus, TardinessKind


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    tardiness: Optional[TardinessKind] = None
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how a punch is classified."""

    @abstractmethod
    def decide_time_in(self, *, punch: time) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_time_out(self, *, punch: time, current: AttendanceStatus) -> StatusDecision:
        raise NotImplementedError
