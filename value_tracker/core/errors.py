"""
Error taxonomy for Value Tracker.

Raised at the storage boundary and by record validation. The calculation
modules never raise these for missing data; zero usage is a defined value.
"""


class TrackerError(Exception):
    """Base class for all tracker errors."""


class NotFoundError(TrackerError):
    """Referenced record does not exist or belongs to another user."""

    def __init__(self, kind: str, record_id: int):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class DuplicateCheckInError(TrackerError):
    """A non-toggling check-in was attempted on an already logged date."""

    def __init__(self, subscription_id: int, day):
        super().__init__(
            f"Subscription {subscription_id} is already checked in on {day.isoformat()}"
        )
        self.subscription_id = subscription_id
        self.day = day


class InvalidInputError(TrackerError, ValueError):
    """Input rejected at the boundary before reaching the engine."""
