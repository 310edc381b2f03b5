"""User-facing messages for validation failures.

Clients and psychologists must learn why an action was refused, so every
failure kind (and, for the video gate, every missing precondition) maps to
an actionable sentence.
"""

from flow_integrity.domain.failures import (
    FORMS_COMPLETE_FIELD,
    PAYMENT_STATE_FIELD,
    SESSION_STATE_FIELD,
    FailureKind,
    SyncInvariant,
    TransitionFailure,
)

KIND_MESSAGES: dict[FailureKind, str] = {
    FailureKind.UNKNOWN_STATE: "The request contained an unrecognised status.",
    FailureKind.FORBIDDEN_EDGE: "This action is not currently permitted.",
    FailureKind.TERMINAL_VIOLATION: "This {entity} is already closed and can no longer be changed.",
    FailureKind.SYNC_VIOLATION: "Your payment hasn't been confirmed yet.",
    FailureKind.ACCESS_DENIED: "You cannot join this call yet.",
}

INVARIANT_MESSAGES: dict[SyncInvariant, str] = {
    SyncInvariant.SESSION_REQUIRES_CONFIRMED_PAYMENT: "Your payment hasn't been confirmed yet.",
    SyncInvariant.PAID_SESSION_WITH_FAILED_PAYMENT: (
        "Your payment failed. Please start a new payment to keep this session."
    ),
}

PRECONDITION_MESSAGES: dict[str, str] = {
    SESSION_STATE_FIELD: "This session is not ready for the call yet.",
    PAYMENT_STATE_FIELD: "Payment not confirmed. Please complete your payment first.",
    FORMS_COMPLETE_FIELD: "Complete your intake form first.",
}

ENTITY_NOUNS: dict[str, str] = {
    "payment": "payment",
    "session": "session",
    "video": "call",
}


def precondition_message(field_name: str) -> str:
    """Message for one missing video-call precondition."""
    return PRECONDITION_MESSAGES.get(field_name, KIND_MESSAGES[FailureKind.ACCESS_DENIED])


def user_message_for(failure: TransitionFailure) -> str:
    """Resolve the end-user message for a failure."""
    if failure.kind is FailureKind.ACCESS_DENIED:
        if failure.field:
            return precondition_message(failure.field)
        return KIND_MESSAGES[FailureKind.ACCESS_DENIED]

    if failure.kind is FailureKind.SYNC_VIOLATION and failure.invariant:
        return INVARIANT_MESSAGES.get(
            failure.invariant, KIND_MESSAGES[FailureKind.SYNC_VIOLATION]
        )

    if failure.kind is FailureKind.TERMINAL_VIOLATION:
        noun = ENTITY_NOUNS.get(failure.entity_type, "record")
        return KIND_MESSAGES[FailureKind.TERMINAL_VIOLATION].format(entity=noun)

    return KIND_MESSAGES[failure.kind]
