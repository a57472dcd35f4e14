"""
Exceptions raised by the exporter.
"""


class ConfigurationError(Exception):
    """Raised at startup when the exporter cannot be configured."""


class FetchError(Exception):
    """An upstream endpoint could not be fetched or projected into metrics."""

    def __init__(self, endpoint: str, cause: str):
        super().__init__(f"{endpoint}: {cause}")
        self.endpoint = endpoint
        self.cause = cause
