"""
Error taxonomy for SmartMark.

Validation and remote errors stop at the notification surface; they are
never raised out of the synchronizer's add/remove/refresh operations.
"""


class SmartmarkError(Exception):
    """Base class for all SmartMark errors."""
    pass


class ValidationError(SmartmarkError):
    """User input failed validation. Never reaches the remote store."""
    pass


class RemoteError(SmartmarkError):
    """A remote store request failed. The message is shown verbatim."""
    pass


class SubscriptionError(SmartmarkError):
    """Change feed subscription misuse or failure."""
    pass


class MalformedRecordError(SmartmarkError):
    """A payload from the store or feed did not match the expected record shape."""
    pass


class NotAuthenticatedError(SmartmarkError):
    """No signed-in user when a session was requested."""
    pass
