"""
Exceptions raised by the fetch, store and configuration layers.

Parsers never raise for report content; see ``meteo.parsers.models.ParseIssue``.
"""


class MeteoError(Exception):
    """Base exception for meteo ingest errors."""

    pass


class FetchError(MeteoError):
    """Bulletin could not be retrieved."""

    pass


class StoreError(MeteoError):
    """Error writing to or reading from the datastore."""

    pass


class ConfigError(MeteoError):
    """Missing or invalid configuration."""

    pass
