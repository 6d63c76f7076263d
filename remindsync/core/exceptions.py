"""
Domain exceptions for the reminder engine.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class RemindSyncError(Exception):
    """Base exception for all reminder engine errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(RemindSyncError):
    """Base exception for storage operations."""

    pass


class ReminderNotFoundError(StorageError):
    """Reminder not found in the active backend."""

    def __init__(self, reminder_id: str):
        super().__init__(
            f"Reminder not found: {reminder_id}",
            code="REMINDER_NOT_FOUND",
            details={"reminder_id": reminder_id},
        )


class DeviceNotFoundError(StorageError):
    """Device registration not found."""

    def __init__(self, device_id: str):
        super().__init__(
            f"Device not found: {device_id}",
            code="DEVICE_NOT_FOUND",
            details={"device_id": device_id},
        )


class NotAuthenticatedError(StorageError):
    """Remote backend operation attempted with no signed-in identity."""

    def __init__(self, operation: str = "remote operation"):
        super().__init__(
            f"Not authenticated for {operation}",
            code="NOT_AUTHENTICATED",
            details={"operation": operation},
        )


class InvalidDataError(StorageError):
    """Malformed record read from a backend."""

    def __init__(self, reason: str, record_id: str | None = None):
        super().__init__(
            f"Invalid reminder data: {reason}",
            code="INVALID_DATA",
            details={"reason": reason, "record_id": record_id},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Notification Exceptions
class SchedulingFailedError(RemindSyncError):
    """The alert center rejected a registration."""

    def __init__(self, reminder_id: str, reason: str):
        super().__init__(
            f"Scheduling failed for {reminder_id}: {reason}",
            code="SCHEDULING_FAILED",
            details={"reminder_id": reminder_id, "reason": reason},
        )


# Parser Exceptions
class ParserError(RemindSyncError):
    """Base exception for parsing operations."""

    pass


class AIParsingError(ParserError):
    """Remote AI parsing call did not produce a usable answer."""

    def __init__(self, provider: str, reason: str, status_code: int | None = None):
        super().__init__(
            f"AI parsing failed on {provider}: {reason}",
            code="AI_PARSING_FAILED",
            details={"provider": provider, "reason": reason, "status_code": status_code},
        )


class CircuitBreakerOpenError(ParserError):
    """Circuit breaker is open due to repeated failures."""

    def __init__(self, provider: str, cooldown_remaining: int):
        super().__init__(
            f"Circuit breaker open for {provider}, retry in {cooldown_remaining}s",
            code="CIRCUIT_BREAKER_OPEN",
            details={"provider": provider, "cooldown_remaining": cooldown_remaining},
        )


# Push Exceptions
class PushDeliveryError(RemindSyncError):
    """A silent push could not be delivered to one device token."""

    def __init__(self, token: str, reason: str, invalid_token: bool = False):
        super().__init__(
            f"Push delivery failed: {reason}",
            code="PUSH_DELIVERY_FAILED",
            details={"token_suffix": token[-8:], "reason": reason},
        )
        self.invalid_token = invalid_token


# Validation Exceptions
class ValidationError(RemindSyncError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )


class ConfigurationError(RemindSyncError):
    """Configuration error."""

    pass
