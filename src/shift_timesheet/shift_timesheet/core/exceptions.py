class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_error"


class LifecycleError(DomainError):
    """Raised when a clock event is not allowed in the entry's current state."""

    kind = "lifecycle_error"


class AlreadyClockedIn(LifecycleError):
    """The employee still has an open entry that must be closed first."""

    kind = "already_clocked_in"


class NoOpenEntry(LifecycleError):
    """Clock-out requested but the employee has no open entry."""

    kind = "no_open_entry"


class ConfigurationError(DomainError):
    """Schedule data is missing or malformed; not caused by user input."""

    kind = "configuration_error"
