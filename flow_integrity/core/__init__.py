"""Core utilities: exceptions, enforcement, concurrency and middleware."""

from flow_integrity.core.exceptions import (
    AppException,
    AuthorizationError,
    ConcurrentModificationError,
    IntegrityConfigLocked,
    StateTransitionError,
    ValidationError,
)

__all__ = [
    "AppException",
    "AuthorizationError",
    "ConcurrentModificationError",
    "IntegrityConfigLocked",
    "StateTransitionError",
    "ValidationError",
]
