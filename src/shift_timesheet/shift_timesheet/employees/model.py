from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee who punches the clock.

    Note: Plain data object; schedules and entries are looked up through repositories.
    """

    employee_id: int
    full_name: str
    branch_id: Optional[int]
    email: Optional[str] = None
    supervisor_id: Optional[int] = None
    is_active: bool = True
