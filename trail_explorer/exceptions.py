"""Exception hierarchy for Trail Explorer.

LookupError subclasses mark missing terrain data so callers holding only a
generic elevation oracle can still catch them with ``except LookupError``.
"""


class TrailExplorerError(Exception):
    """Base class for all Trail Explorer errors."""


class ConfigurationError(TrailExplorerError, ValueError):
    """Invalid exploration or orchestration parameters."""


class InvalidBoundsError(ConfigurationError):
    """Bounding rectangle with min > max on an axis."""


class ElevationUnavailableError(TrailExplorerError, LookupError):
    """No terrain height available at the requested coordinate."""


class StartElevationError(ElevationUnavailableError):
    """The start coordinate has no elevation; the attempt cannot begin."""
