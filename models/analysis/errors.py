"""
ClinRx Interaction Copilot – Analysis Errors
=============================================
Typed failures of a single analysis submission. All are terminal: nothing
is retried, and a failed submission never yields a partial result.
"""

from __future__ import annotations

from typing import Optional

GENERIC_FAILURE_MESSAGE = "An unknown error occurred while contacting the analysis service."


class AnalysisError(Exception):
    """Base class; ``user_message`` is safe to show in the UI."""

    kind = "analysis_error"
    default_message = GENERIC_FAILURE_MESSAGE

    def __init__(self, user_message: Optional[str] = None, detail: Optional[str] = None):
        self.user_message = user_message or self.default_message
        self.detail = detail
        super().__init__(self.user_message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.user_message}


class EmptyResponse(AnalysisError):
    """The service answered, but with no text."""

    kind = "empty_response"
    default_message = "The analysis produced no result. The AI service returned an empty response."


class InvalidResponseFormat(AnalysisError):
    """The text could not be parsed into the expected report structure."""

    kind = "invalid_response_format"
    default_message = (
        "The AI returned an invalid JSON response. "
        "Please try again or adjust your inputs."
    )


class TransportFailure(AnalysisError):
    """The request itself failed (network, auth, rate limit, timeout)."""

    kind = "transport_failure"


class MissingCredentials(TransportFailure):
    """No credential configured for a backend that needs one."""

    kind = "missing_credentials"
    default_message = (
        "No API key is configured for the analysis service. "
        "Set GEMINI_API_KEY in your .env file and restart."
    )
