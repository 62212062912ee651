class CountryCacheError(Exception):
    """Base class for errors raised by the country cache."""


class SourceUnavailableError(CountryCacheError):
    """An external data source could not be fetched or returned junk."""

    def __init__(self, source, details):
        self.source = source
        self.details = details
        super().__init__(f"Could not fetch data from {source}: {details}")


class InvalidRequestError(CountryCacheError):
    """A required request parameter is missing or blank."""
