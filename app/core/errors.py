"""Application-level exception types.

This module defines domain errors raised by services and routes, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for clients.
    """

    code: str
    message: str
    details: Any = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""

    status_code: ClassVar[int] = 404


class ConflictAppError(AppError):
    """Raised when a resource with the same identifier already exists."""

    status_code: ClassVar[int] = 409
