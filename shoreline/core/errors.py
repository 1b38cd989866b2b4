class ShorelineError(Exception):
    """Base class for every error raised by shoreline."""


class ConfigError(ShorelineError, ValueError):
    """Invalid grid dimensions, source cell or search parameter."""


class FrameWriteError(ShorelineError, OSError):
    """A frame could not be rendered to disk. The search keeps going."""


class ExportError(ShorelineError, OSError):
    """The animation could not be assembled from the saved frames."""
