from __future__ import annotations

from enum import Enum


class ApprovalStatus(str, Enum):
    """Workflow status shared by leave and overtime requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    def can_transition_to(self, target: "ApprovalStatus") -> bool:
        return target in _APPROVAL_TRANSITIONS[self]

    @property
    def is_final(self) -> bool:
        return not _APPROVAL_TRANSITIONS[self]


_APPROVAL_TRANSITIONS = {
    ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.APPROVED: frozenset(),
    ApprovalStatus.REJECTED: frozenset(),
}


class AttendanceStatus(str, Enum):
    """Classification of a single punch."""

    ON_TIME = "ON_TIME"
    WITHIN_GRACE = "WITHIN_GRACE"
    LATE = "LATE"
    UNDERTIME = "UNDERTIME"


class TardinessKind(str, Enum):
    LATE = "LATE"
    UNDERTIME = "UNDERTIME"


class DailyAttendanceState(str, Enum):
    """Row state of the daily attendance report."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    INCOMPLETE = "INCOMPLETE"
    ABSENT = "ABSENT"


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    POLICY = "POLICY"
    STATE = "STATE"
    COLLABORATOR = "COLLABORATOR"
