"""Exception types raised by polymap collaborators."""


class PolymapError(Exception):
    """Base class for all polymap errors."""


class BoundaryError(PolymapError):
    """The boundary file is missing, unreadable, or holds no polygon."""


class FeatureDataError(PolymapError):
    """Vector feature data could not be parsed."""


class DownloadError(PolymapError):
    """Fetching vector data from the remote source failed."""
