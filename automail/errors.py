"""Exceptions raised by the mail generation pipeline."""
from __future__ import annotations


class AutomailError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(AutomailError):
    """Raised when the catalog or settings cannot be loaded."""


class ValidationError(AutomailError):
    """Caller input is missing or malformed."""


class GenerationError(AutomailError):
    """Mail content could not be generated for a code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class RecipientNotFound(GenerationError):
    def __init__(self, code: str) -> None:
        super().__init__(code, f"No recipient registered for code '{code}'")


class TemplateNotFound(GenerationError):
    def __init__(self, code: str) -> None:
        super().__init__(code, f"No mail template registered for code '{code}'")


class DataUnavailable(GenerationError):
    def __init__(self, code: str, reason: str) -> None:
        super().__init__(code, f"Data unavailable for code '{code}': {reason}")
        self.reason = reason


class DataError(AutomailError):
    """A data strategy could not produce values."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class DeliveryError(AutomailError):
    """The delivery channel failed to hand the message over."""

    def __init__(self, underlying: Exception | str) -> None:
        super().__init__(str(underlying))
        self.underlying = underlying
