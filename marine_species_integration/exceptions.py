"""Errors raised by the integration pipeline.

Every fatal condition of a run maps to one of these.  Malformed values
inside a table are never errors: they are replaced by a sentinel (null or
the release-date epoch) where they are parsed.
"""


class MarineIntegrationError(Exception):
    """Base class for pipeline errors."""


class MissingInputError(MarineIntegrationError, FileNotFoundError):
    """A required input file does not exist."""


class SchemaError(MarineIntegrationError, KeyError):
    """A table lacks a column the stage depends on."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class JoinConfigurationError(MarineIntegrationError, ValueError):
    """A requested join key is present in neither source."""


class ExternalServiceError(MarineIntegrationError, RuntimeError):
    """FishBase or OBIS failed or returned nothing."""


class EmptyResultError(MarineIntegrationError, RuntimeError):
    """A filter step produced zero rows."""
