"""Exception types raised by the delivery client."""


class PayNowError(Exception):
    """Base error for delivery client failures."""


class ResponseParseError(PayNowError):
    """Raised when a backend response body cannot be decoded into the expected shape."""


class ConfigError(PayNowError):
    """Raised when the persisted delivery config cannot be read."""
