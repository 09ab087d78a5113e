from __future__ import annotations

"""Error taxonomy for the Valoris ingestion and analysis pipeline.

Every failure raised inside the core is one of the classes below. The
``error_type`` code is what ends up in the JSON Lines error log, so it is
kept in UPPER_SNAKE form and never changes once released.

Propagation policy:
- ConfigError surfaces to the caller immediately (nothing to retry).
- ApiError / ParsingError / NetworkError / ValidationError raised by the
  remote analysis stages are caught by the pipeline and converted into
  fallback synthesis.
- ParsingError raised by the tabular reader marks only that file as failed.
"""

__all__ = [
    "ValorisError",
    "ConfigError",
    "ApiError",
    "ParsingError",
    "NetworkError",
    "ValidationError",
    "truncate_body",
]

BODY_LOG_LIMIT = 500


class ValorisError(Exception):
    """Base class for all pipeline errors."""

    error_type = "VALORIS_ERROR"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConfigError(ValorisError):
    """Required credential or endpoint missing, or config file invalid."""

    error_type = "CONFIG_ERROR"


class ApiError(ValorisError):
    """Remote stage answered with a non-2xx status."""

    error_type = "API_ERROR"

    def __init__(self, message: str, status_code: int, body: str = "") -> None:
        super().__init__(message, status_code=status_code)
        self.body = body


class ParsingError(ValorisError):
    """Response body or uploaded file could not be decoded."""

    error_type = "PARSING_ERROR"


class NetworkError(ValorisError):
    """Transport-level failure (connection refused, DNS, timeout)."""

    error_type = "NETWORK_ERROR"


class ValidationError(ValorisError):
    """Decoded payload lacks the fields the pipeline needs."""

    error_type = "VALIDATION_ERROR"


def truncate_body(text: str | None, limit: int = BODY_LOG_LIMIT) -> str:
    """Shorten a response body for log context."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "...(truncated)"
