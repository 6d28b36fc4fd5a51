"""Exceptions raised by flexpublish."""


class FlexPublishError(Exception):
    """Base class for flexpublish errors."""


class ConfigurationError(FlexPublishError, ValueError):
    """Raised when a publisher configuration cannot be bound."""


class BuildInterruptedError(FlexPublishError):
    """Raised when a running build is cooperatively cancelled."""
