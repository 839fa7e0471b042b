from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Employee:
    """Employment classification as seen by the rule engines.

    ``is_overtime_eligible`` marks the rank-and-file class: hourly pay rules,
    overtime requests and premium pay apply only to it.
    """

    employee_id: int
    full_name: str
    hourly_rate: Decimal
    is_overtime_eligible: bool
    is_active: bool = True
