from __future__ import annotations

from enum import Enum


class EntryState(str, Enum):
    """Lifecycle state of an attendance entry."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class EntryField(str, Enum):
    """Timestamp fields a manual correction may amend."""

    TIME_IN = "time_in"
    TIME_OUT = "time_out"
