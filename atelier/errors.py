"""
Failure taxonomy for the showcase pipeline.

Every failure carries the HTTP status the routes report it with. Only
BackendParseFailure is ever recovered locally (the analyzer falls back to a
minimal record); everything else ends the current request. Nothing retries.
"""

QUOTA_MARKERS = ("quota", "resource_exhausted", "429")


class PipelineError(Exception):
    status_code = 500


class ValidationFailure(PipelineError):
    """A required input is missing or unreadable."""

    status_code = 400


class ConfigurationFailure(PipelineError):
    """A backend credential is missing."""

    status_code = 500


class BackendParseFailure(PipelineError):
    """The model reply did not contain the expected JSON."""

    status_code = 502


class AnalysisFailure(PipelineError):
    """The analysis backend was unreachable or returned nothing usable."""

    status_code = 500


class GenerationFailure(PipelineError):
    """The backend produced no usable image or video."""

    status_code = 500


class QuotaFailure(PipelineError):
    """The backend reported rate-limit or quota exhaustion."""

    status_code = 429
    is_quota_error = True

    def __init__(self, message: str = "Video generation quota exceeded. Please try again later."):
        super().__init__(message)


class TimeoutFailure(PipelineError):
    """The global polling deadline elapsed before both jobs finished."""

    status_code = 408


def is_quota_error(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in QUOTA_MARKERS)


def classify_backend_error(exc: Exception) -> PipelineError:
    """Map an arbitrary backend exception onto the taxonomy."""
    if isinstance(exc, PipelineError):
        return exc
    if is_quota_error(str(exc)):
        return QuotaFailure()
    return GenerationFailure(str(exc) or exc.__class__.__name__)
