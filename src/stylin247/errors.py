class Stylin247Error(Exception):
    """Base error."""


class ConfigurationError(Stylin247Error):
    """Raised when an environment setting cannot be parsed."""


class SurfaceUnavailableError(Stylin247Error):
    """Raised when a draw is requested before the surface has a size."""


class TimeSourceError(Stylin247Error):
    """Raised when the clock cannot supply the current time."""
