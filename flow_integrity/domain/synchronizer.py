"""Cross-entity synchronization checks.

Given a proposed transition and the current states of the other
lifecycles, decide whether the combination keeps payment, session and
video call consistent. Rules run in order; the first violation wins:

1. A session may not enter paid/ready/in_progress/completed unless the
   supplied payment state is confirmed.
2. A session may never become paid while its payment has failed.
3. A video call may not move past not_started unless the session is ready
   (or in progress), the payment is confirmed and the intake forms are
   complete.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic import ValidationError as PydanticValidationError

from flow_integrity.domain.catalog import EntityType
from flow_integrity.domain.failures import (
    FORMS_COMPLETE_FIELD,
    PAYMENT_STATE_FIELD,
    SESSION_STATE_FIELD,
    VALID,
    FailureKind,
    SyncInvariant,
    ValidationResult,
    fail,
)
from flow_integrity.domain.payment_state import PaymentState
from flow_integrity.domain.session_state import (
    CALL_ELIGIBLE_SESSION_STATES,
    PAYMENT_GATED_SESSION_STATES,
    SessionState,
)
from flow_integrity.domain.video_state import VideoState


class SyncContext(BaseModel):
    """Current states of the other lifecycles, supplied with a proposed transition."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    payment_state: PaymentState | None = Field(default=None, alias=PAYMENT_STATE_FIELD)
    session_state: SessionState | None = Field(default=None, alias=SESSION_STATE_FIELD)
    forms_complete: StrictBool | None = Field(default=None, alias=FORMS_COMPLETE_FIELD)


_FIELD_ALIASES = {
    "payment_state": PAYMENT_STATE_FIELD,
    "session_state": SESSION_STATE_FIELD,
    "forms_complete": FORMS_COMPLETE_FIELD,
}


class InvalidContextError(ValueError):
    """Raised when a synchronization context holds out-of-catalog values."""

    def __init__(self, field_name: str, message: str) -> None:
        self.field_name = field_name
        super().__init__(message)


def coerce_context(context: SyncContext | Mapping[str, Any]) -> SyncContext:
    """Build a SyncContext from a mapping (camelCase or snake_case keys).

    Unrecognised keys are rejected; a misspelled paymentState must not
    read as "not supplied".

    Raises:
        InvalidContextError: If a key is unknown or a value is not in its catalog
    """
    if isinstance(context, SyncContext):
        return context
    try:
        return SyncContext.model_validate(dict(context))
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        raw_field = str(error["loc"][0]) if error.get("loc") else "context"
        field_name = _FIELD_ALIASES.get(raw_field, raw_field)
        if error.get("type") == "extra_forbidden":
            message = f"Unknown field {field_name!r} in synchronization context"
        else:
            message = (
                f"Invalid {field_name} in synchronization context: {error.get('input')!r}"
            )
        raise InvalidContextError(field_name, message) from None


def check_session_sync(
    current: SessionState, new: SessionState, context: SyncContext
) -> ValidationResult:
    """Payment ↔ session rules for a proposed session transition."""
    payment = context.payment_state

    if new in PAYMENT_GATED_SESSION_STATES and payment is not None:
        if payment is not PaymentState.CONFIRMED:
            return fail(
                FailureKind.SYNC_VIOLATION,
                EntityType.SESSION,
                current,
                new,
                f"Session cannot advance to {new.value} without confirmed payment "
                f"(payment is {payment.value})",
                invariant=SyncInvariant.SESSION_REQUIRES_CONFIRMED_PAYMENT,
                fields=(PAYMENT_STATE_FIELD,),
            )

    # Explicit contradiction; checked even if the gated set above changes
    if new is SessionState.PAID and payment is PaymentState.FAILED:
        return fail(
            FailureKind.SYNC_VIOLATION,
            EntityType.SESSION,
            current,
            new,
            "Session cannot be marked paid while its payment has failed",
            invariant=SyncInvariant.PAID_SESSION_WITH_FAILED_PAYMENT,
            fields=(PAYMENT_STATE_FIELD,),
        )

    return VALID


def missing_call_preconditions(context: SyncContext) -> tuple[str, ...]:
    """Name every unmet video-call precondition, in check order."""
    missing: list[str] = []
    if context.session_state not in CALL_ELIGIBLE_SESSION_STATES:
        missing.append(SESSION_STATE_FIELD)
    if context.payment_state is not PaymentState.CONFIRMED:
        missing.append(PAYMENT_STATE_FIELD)
    if context.forms_complete is not True:
        missing.append(FORMS_COMPLETE_FIELD)
    return tuple(missing)


def check_video_sync(
    current: VideoState, new: VideoState, context: SyncContext
) -> ValidationResult:
    """Access gate for a proposed video call transition."""
    if new is VideoState.NOT_STARTED:
        return VALID

    missing = missing_call_preconditions(context)
    if missing:
        return fail(
            FailureKind.ACCESS_DENIED,
            EntityType.VIDEO,
            current,
            new,
            f"Video call cannot move to {new.value}: unmet preconditions {', '.join(missing)}",
            invariant=SyncInvariant.VIDEO_ACCESS_PRECONDITIONS,
            fields=missing,
        )

    return VALID


def check_cross_entity(
    entity_type: EntityType,
    current: Enum,
    new: Enum,
    context: SyncContext,
) -> ValidationResult:
    """Run the cross-entity rules that apply to the proposed transition.

    States must already be parsed into their catalog enums.
    """
    if entity_type is EntityType.SESSION:
        return check_session_sync(current, new, context)  # type: ignore[arg-type]
    if entity_type is EntityType.VIDEO:
        return check_video_sync(current, new, context)  # type: ignore[arg-type]
    return VALID
