"""Custom exceptions for the updownbook order book layer."""


class UpDownBookError(Exception):
    """Base exception for updownbook errors."""
    pass


class FeedConnectionError(UpDownBookError):
    """Raised when the feed cannot be connected or a subscription send fails."""
    pass


class DecodeError(UpDownBookError):
    """Raised when a feed frame is not valid JSON or lacks required fields."""
    pass


class NotifierClosed(UpDownBookError):
    """Raised by an update receiver once the notifier is closed and drained."""
    pass


class ConfigurationError(UpDownBookError):
    """Raised when configuration is invalid."""
    pass


class GammaAPIError(UpDownBookError):
    """Error from Gamma API."""
    pass
