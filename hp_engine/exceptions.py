"""
Error taxonomy for the analysis and export pipeline.

Every operation catches failures at its own boundary and re-raises one of
these; the FastAPI handlers in ``hp_engine.main`` turn them into JSON bodies.
"""
from __future__ import annotations

from typing import Optional


class HPEngineError(Exception):
    """Base class for all user-visible pipeline errors."""

    status_code: int = 500
    default_message: str = "Operation failed."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InputError(HPEngineError):
    """Missing credential or corpus text at submission time."""

    status_code = 400
    default_message = "Invalid input."


class AuthError(HPEngineError):
    """The analysis client was called without a credential."""

    status_code = 401
    default_message = "Gemini API Key is required."


class ExtractionError(HPEngineError):
    """An uploaded file could not be turned into text."""

    status_code = 422
    default_message = "Error extracting text. Please ensure it's a valid Punjabi document."


class OracleError(HPEngineError):
    """Transport, authentication or schema failure from the remote model."""

    status_code = 502
    default_message = "Analysis failed."


class ExportError(HPEngineError):
    """Report assembly or serialization failed."""

    status_code = 500
    default_message = "Export failed."


class OperationInProgressError(HPEngineError):
    """The matching in-flight flag is already set."""

    status_code = 409
    default_message = "Another request of this kind is still running."
