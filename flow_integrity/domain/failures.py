"""Typed validation results.

Validation never raises for a rejected transition; it returns a
ValidationResult whose failure names the kind, the attempted edge and the
offending field(s). Callers that prefer exceptions use raise_for_failure().
"""

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    """Kinds of validation failure."""

    UNKNOWN_STATE = "UNKNOWN_STATE"
    FORBIDDEN_EDGE = "FORBIDDEN_EDGE"
    TERMINAL_VIOLATION = "TERMINAL_VIOLATION"
    SYNC_VIOLATION = "SYNC_VIOLATION"
    ACCESS_DENIED = "ACCESS_DENIED"


class SyncInvariant(str, Enum):
    """Named cross-entity invariants."""

    SESSION_REQUIRES_CONFIRMED_PAYMENT = "session_requires_confirmed_payment"
    PAID_SESSION_WITH_FAILED_PAYMENT = "paid_session_with_failed_payment"
    VIDEO_ACCESS_PRECONDITIONS = "video_access_preconditions"


# Context field names, as callers send them
PAYMENT_STATE_FIELD = "paymentState"
SESSION_STATE_FIELD = "sessionState"
FORMS_COMPLETE_FIELD = "formsComplete"


@dataclass(frozen=True)
class TransitionFailure:
    """A rejected transition."""

    kind: FailureKind
    entity_type: str
    current_state: str
    new_state: str
    reason: str
    invariant: SyncInvariant | None = None
    fields: tuple[str, ...] = ()

    @property
    def field(self) -> str | None:
        """First offending field, if any."""
        return self.fields[0] if self.fields else None

    @property
    def transition(self) -> str:
        return f"{self.current_state} → {self.new_state}"

    @property
    def user_message(self) -> str:
        """Actionable end-user message for this failure."""
        from flow_integrity.domain.messages import user_message_for

        return user_message_for(self)

    def to_dict(self) -> dict:
        return {
            "code": self.kind.value,
            "message": self.user_message,
            "reason": self.reason,
            "entity_type": self.entity_type,
            "transition": self.transition,
            "invariant": self.invariant.value if self.invariant else None,
            "fields": list(self.fields),
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a transition validation."""

    failure: TransitionFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_failure(self) -> None:
        """Raise StateTransitionError if validation failed."""
        if self.failure is not None:
            from flow_integrity.core.exceptions import StateTransitionError

            raise StateTransitionError(self.failure)


VALID = ValidationResult()


def _state_text(value: object) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def fail(
    kind: FailureKind,
    entity_type: object,
    current_state: object,
    new_state: object,
    reason: str,
    invariant: SyncInvariant | None = None,
    fields: tuple[str, ...] = (),
) -> ValidationResult:
    """Build a failed ValidationResult."""
    return ValidationResult(
        failure=TransitionFailure(
            kind=kind,
            entity_type=_state_text(entity_type),
            current_state=_state_text(current_state),
            new_state=_state_text(new_state),
            reason=reason,
            invariant=invariant,
            fields=fields,
        )
    )
