"""Custom application exceptions."""

from typing import Any

from fastapi import HTTPException, status

from flow_integrity.domain.failures import FailureKind, TransitionFailure


class AppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: Any = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Validation error exception."""

    def __init__(self, detail: str = "Validation failed", errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class AuthorizationError(AppException):
    """Authorization denied exception."""

    def __init__(self, detail: str = "You don't have permission to access this resource") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


# HTTP status per failure kind
FAILURE_STATUS_CODES: dict[FailureKind, int] = {
    FailureKind.UNKNOWN_STATE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    FailureKind.FORBIDDEN_EDGE: status.HTTP_409_CONFLICT,
    FailureKind.TERMINAL_VIOLATION: status.HTTP_409_CONFLICT,
    FailureKind.SYNC_VIOLATION: status.HTTP_409_CONFLICT,
    FailureKind.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
}


class StateTransitionError(AppException):
    """A state transition was rejected by validation."""

    def __init__(self, failure: TransitionFailure) -> None:
        self.failure = failure
        super().__init__(
            status_code=FAILURE_STATUS_CODES[failure.kind],
            detail=failure.to_dict(),
        )

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind

    def __str__(self) -> str:
        return f"{self.failure.kind.value}: {self.failure.reason}"


class ConcurrentModificationError(AppException):
    """The record changed under us and retries were exhausted."""

    def __init__(self, resource: str = "Record", identifier: str | None = None, attempts: int = 0) -> None:
        self.attempts = attempts
        detail = f"{resource} was modified concurrently"
        if identifier:
            detail = f"{resource} '{identifier}' was modified concurrently"
        if attempts:
            detail = f"{detail} ({attempts} attempts)"
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class IntegrityConfigLocked(AuthorizationError):
    """Enforcement level changes need an admin, emergency or startup context."""

    def __init__(self, changed_by: str) -> None:
        self.changed_by = changed_by
        super().__init__(
            "Integrity configuration is locked: only admin, emergency or startup "
            f"contexts can change the enforcement level (attempted by {changed_by})"
        )
