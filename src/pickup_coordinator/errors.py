"""Error taxonomy for pickup coordination."""


class PickupError(Exception):
    """Base class for pickup coordination errors."""


class ValidationError(PickupError, ValueError):
    """Raised when a submission or reply is missing required text."""


class WriteFailure(PickupError):
    """Raised when the record store rejects or cannot accept a write."""


class SubscriptionFailure(PickupError):
    """Delivered to listeners when a store read for a snapshot fails."""
