"""Display attributes for domain statuses.

Kept apart from the enums so the domain layer carries no UI concerns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union

from .core.enums import ApprovalStatus, AttendanceStatus, DailyAttendanceState


@dataclass(frozen=True)
class StatusDisplay:
    label: str
    css_class: str
    icon: str
    priority: int

    def to_dict(self) -> Dict[str, object]:
        return {"label": self.label, "css_class": self.css_class, "icon": self.icon, "priority": self.priority}


# str-valued enums share values (LATE), so entries are grouped per enum type.
_DISPLAY = {
    ApprovalStatus: {
        ApprovalStatus.PENDING: StatusDisplay("Pending", "bg-warning text-dark", "hourglass", 1),
        ApprovalStatus.APPROVED: StatusDisplay("Approved", "bg-success", "check", 2),
        ApprovalStatus.REJECTED: StatusDisplay("Rejected", "bg-danger", "x", 3),
    },
    AttendanceStatus: {
        AttendanceStatus.ON_TIME: StatusDisplay("On time", "bg-success", "clock", 1),
        AttendanceStatus.WITHIN_GRACE: StatusDisplay("Within grace period", "bg-info text-dark", "clock", 2),
        AttendanceStatus.LATE: StatusDisplay("Late", "bg-danger", "alert", 3),
        AttendanceStatus.UNDERTIME: StatusDisplay("Undertime", "bg-warning text-dark", "alert", 3),
    },
    DailyAttendanceState: {
        DailyAttendanceState.PRESENT: StatusDisplay("Present", "bg-success", "check", 1),
        DailyAttendanceState.LATE: StatusDisplay("Late", "bg-danger", "alert", 2),
        DailyAttendanceState.INCOMPLETE: StatusDisplay("Incomplete", "bg-warning text-dark", "half", 3),
        DailyAttendanceState.ABSENT: StatusDisplay("Absent", "bg-secondary", "minus", 4),
    },
}

_UNKNOWN = StatusDisplay("Unknown", "bg-secondary", "question", 99)


def display_for(status: Union[ApprovalStatus, AttendanceStatus, DailyAttendanceState, None]) -> StatusDisplay:
    if status is None:
        return _UNKNOWN
    return _DISPLAY.get(type(status), {}).get(status, _UNKNOWN)
