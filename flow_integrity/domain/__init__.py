"""Booking lifecycle domain: state catalogs, transition rules and cross-entity checks."""

from flow_integrity.domain.catalog import (
    EntityType,
    UnknownEntityTypeError,
    UnknownStateError,
    is_terminal,
    is_valid_state,
    parse_state,
)
from flow_integrity.domain.failures import (
    FailureKind,
    SyncInvariant,
    TransitionFailure,
    ValidationResult,
)
from flow_integrity.domain.payment_state import PaymentState, assert_payment_transition
from flow_integrity.domain.session_state import SessionState, assert_session_transition
from flow_integrity.domain.synchronizer import SyncContext
from flow_integrity.domain.transitions import allowed_transitions, check_entity_transition
from flow_integrity.domain.validation import assert_transition, validate_transition
from flow_integrity.domain.video_state import VideoState, assert_video_transition

__all__ = [
    "EntityType",
    "FailureKind",
    "PaymentState",
    "SessionState",
    "SyncContext",
    "SyncInvariant",
    "TransitionFailure",
    "UnknownEntityTypeError",
    "UnknownStateError",
    "ValidationResult",
    "VideoState",
    "allowed_transitions",
    "assert_payment_transition",
    "assert_session_transition",
    "assert_transition",
    "assert_video_transition",
    "check_entity_transition",
    "is_terminal",
    "is_valid_state",
    "parse_state",
    "validate_transition",
]
