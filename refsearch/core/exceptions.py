"""
Application-level exception types.

Provides domain-specific exceptions for the reference search service so that
the HTTP layer can map them onto status codes without inspecting messages.
"""

from __future__ import annotations


class AppError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        self.detail = detail or message
        super().__init__(message)


class ValidationError(AppError, ValueError):
    """Raised when a request is missing required input or carries invalid hints."""

    status_code = 400


class ConfigurationError(AppError):
    """Raised when required configuration is missing or invalid."""


class InternalError(AppError):
    """Raised when scene analysis or scoring fails unexpectedly."""


class EntityNotFoundError(AppError):
    """Raised when a character record cannot be found."""

    status_code = 404

    def __init__(self, entity_type: str, entity_id: object) -> None:
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            detail=f"{entity_type} not found",
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
