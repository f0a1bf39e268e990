"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_TIMEZONE = "UTC"
# Open entries whose shift date is older than this many days are "carried over".
STALE_OPEN_ENTRY_DAYS = 1
