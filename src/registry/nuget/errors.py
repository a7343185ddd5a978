"""Exception types raised by the NuGet registry layer."""


class RestorePadError(Exception):
    """Base class for errors raised by this package."""


class FatalProtocolError(RestorePadError):
    """A package source could not be queried.

    Raised for unreachable feeds, non-success HTTP statuses and malformed
    responses. Search federation treats it as "this source has no results".
    """

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class SettingsError(RestorePadError):
    """A NuGet.Config file could not be read or parsed."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path
