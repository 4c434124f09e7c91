"""Source of the current instant."""

from datetime import datetime, timezone


class Clock:
    """Returns the current UTC time.

    Services take a clock instead of calling ``datetime.now`` so tests can
    pin "now" to a fixed instant.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
