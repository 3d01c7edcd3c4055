"""
Centralized error handling for the descent engine.

Defines the exception hierarchy raised by the engine, a small handler that
records recoverable (soft) failures, and validation helpers used at the
data boundary.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class DescentError(Exception):
    """Base class for every error raised by the engine."""


class CatalogLookupError(DescentError, LookupError):
    """Raised when an id is not present in a content catalog."""

    def __init__(self, catalog: str, entry_id: str) -> None:
        super().__init__(f"Unknown {catalog} id: '{entry_id}'")
        self.catalog = catalog
        self.entry_id = entry_id


class UnimplementedMechanicError(DescentError):
    """Raised by the mechanic dispatcher for a mechanic without bespoke behaviour."""

    def __init__(self, mechanic: Any) -> None:
        tag = getattr(mechanic, "value", mechanic)
        super().__init__(f"Special mechanic '{tag}' not yet implemented")
        self.mechanic = mechanic
        self.tag = tag


class CombatStateError(DescentError):
    """Raised when a session operation is called in the wrong phase or with
    an ability that is not on offer."""


class ErrorSeverity(Enum):
    """Enumeration of error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class GameError:
    """A handled failure with severity and context."""

    message: str
    severity: ErrorSeverity
    context: dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None


class ErrorHandler:
    """Records and logs recoverable failures (insufficient SP, dead actors, ...)."""

    def __init__(self) -> None:
        self.logger = logging.getLogger("descent.errors")
        self.error_history: list[GameError] = []

    def handle(
        self,
        message: str,
        severity: ErrorSeverity,
        context: Optional[dict[str, Any]] = None,
        exception: Optional[Exception] = None,
    ) -> GameError:
        """Record an error and log it according to its severity."""
        error = GameError(
            message=message,
            severity=severity,
            context=context or {},
            exception=exception,
        )
        self.error_history.append(error)

        # Prefix context keys to avoid clashing with LogRecord attributes.
        safe_context = {f"ctx_{key}": value for key, value in error.context.items()}

        if severity == ErrorSeverity.CRITICAL:
            self.logger.critical(message, extra=safe_context, exc_info=exception)
        elif severity == ErrorSeverity.HIGH:
            self.logger.error(message, extra=safe_context)
        elif severity == ErrorSeverity.MEDIUM:
            self.logger.warning(message, extra=safe_context)
        else:
            self.logger.info(message, extra=safe_context)
        return error

    def clear(self) -> None:
        self.error_history.clear()


# Global error handler instance
ERROR_HANDLER = ErrorHandler()


# ==============================================================================
# VALIDATION HELPERS
# ==============================================================================


def require_non_empty_string(
    value: Any, param_name: str, context: Optional[dict[str, Any]] = None
) -> str:
    """
    Validates that a value is a non-empty string.

    Args:
        value: The value to validate
        param_name: Human-readable parameter name for error messages
        context: Additional context for logging

    Returns:
        str: The validated string value

    Raises:
        ValueError: If validation fails
    """
    if not value or not isinstance(value, str):
        ERROR_HANDLER.handle(
            f"{param_name} must be a non-empty string, got: {value!r}",
            ErrorSeverity.HIGH,
            {**(context or {}), "param_name": param_name},
        )
        raise ValueError(f"Invalid {param_name}: {value!r}")
    return value


def ensure_int_in_range(
    value: Any,
    param_name: str,
    min_val: int,
    max_val: Optional[int] = None,
    context: Optional[dict[str, Any]] = None,
) -> int:
    """
    Ensures a value is an integer within the specified range, clamping if needed.

    Args:
        value: The value to validate
        param_name: Human-readable parameter name for error messages
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive), None for no maximum
        context: Additional context for logging

    Returns:
        int: The clamped integer value

    Raises:
        ValueError: If the value is not an integer at all
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Invalid {param_name}: expected int, got {type(value).__name__}")
    clamped = max(min_val, value)
    if max_val is not None:
        clamped = min(max_val, clamped)
    if clamped != value:
        ERROR_HANDLER.handle(
            f"{param_name} out of range, got: {value}, correcting to {clamped}",
            ErrorSeverity.MEDIUM,
            {**(context or {}), "min_val": min_val, "max_val": max_val},
        )
    return clamped
