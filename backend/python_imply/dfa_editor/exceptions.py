"""
Error kinds raised by the DFA editor.

Every error is recoverable by the user: the editor reports the message and
keeps the model in its last valid state.
"""

from typing import Optional


class DfaEditorError(Exception):
    """Base class for all editor errors."""

    error_type = "DfaEditorError"
    hint: Optional[str] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DfaEditorError):
    """An entity violates one of its store rules."""

    error_type = "ValidationError"


class MissingRequiredField(ValidationError):
    error_type = "MissingRequiredField"
    hint = "Fill in every required field before saving."


class LengthViolation(ValidationError):
    error_type = "LengthViolation"
    hint = "State names may have at most 8 characters, symbols exactly one."


class StructuralIncompleteness(DfaEditorError):
    error_type = "StructuralIncompleteness"
    hint = "A DFA needs states, symbols, transitions, a start state and accepting states."


class DanglingReference(DfaEditorError):
    error_type = "DanglingReference"
    hint = "Fix or remove the transitions that refer to missing states or symbols."


class MalformedDocument(DfaEditorError):
    error_type = "MalformedDocument"
    hint = "The document must be JSON in the canonical DFA shape."


class SubmissionRefused(DfaEditorError):
    """The DFA failed validation, so nothing was sent."""

    error_type = "SubmissionRefused"
    hint = "Resolve the validation message before creating the application."


class GenerationServiceError(DfaEditorError):
    """The generation service answered with a non-success status."""

    error_type = "GenerationServiceError"

    def __init__(self, status_code: int, text: str):
        super().__init__(f"Error, Status: {status_code}\n\n{text}")
        self.status_code = status_code
        self.text = text


class ServiceUnavailable(DfaEditorError):
    """The generation service could not be reached."""

    error_type = "ServiceUnavailable"
    hint = "Check that the generation service is running and reachable."
