from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.exceptions import ValidationError


def require_positive_id(value: object, field_name: str) -> int:
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a valid id")
    if parsed <= 0:
        raise ValidationError(f"{field_name} is not a valid id")
    return parsed


def require_punch_order(time_in: datetime, time_out: Optional[datetime]) -> None:
    if time_out is not None and time_in > time_out:
        raise ValidationError(
            f"Time in ({time_in:%H:%M:%S}) shouldn't be later than Time out ({time_out:%H:%M:%S})."
        )


def require_not_future(value: Optional[datetime], now: datetime, field_name: str) -> None:
    if value is not None and value > now:
        raise ValidationError(f"{field_name} ({value:%H:%M:%S}) shouldn't be later than current time.")
