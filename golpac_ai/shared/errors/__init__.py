"""Unified error hierarchy for the Golpac AI assistant.

All domain errors inherit from AssistantError. The dialogue engine resolves
input ambiguity into conversational answers and never raises; these errors
cover configuration loading and the gateway boundary only.
"""

from __future__ import annotations


class AssistantError(Exception):
    """Base error for all Golpac AI exceptions."""

    def __init__(self, message: str, code: str = "ASSISTANT_ERROR") -> None:
        self.code = code
        super().__init__(message)


class ConfigError(AssistantError):
    """Intent/flow configuration is missing or malformed."""

    def __init__(self, message: str, section: str = "") -> None:
        self.section = section
        prefix = f"[{section}] " if section else ""
        super().__init__(f"{prefix}{message}", code="CONFIG_INVALID")


class NotFoundError(AssistantError):
    """Requested resource not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            code="NOT_FOUND",
        )


class ValidationError(AssistantError):
    """Input validation failed."""

    def __init__(self, message: str, field: str = "") -> None:
        self.field = field
        super().__init__(message, code="VALIDATION")


__all__ = [
    "AssistantError",
    "ConfigError",
    "NotFoundError",
    "ValidationError",
]
