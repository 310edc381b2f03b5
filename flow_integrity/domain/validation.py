"""Validation entry point.

Every mutation path (session approval, payment webhook, video join-check)
calls validate_transition() before persisting a state change. The validator
is stateless and never touches storage, so it is safe to call from any
number of concurrent requests.

Caller obligation: validation is only as good as the current state it was
given. Two requests that read the same current state can both pass and then
write conflicting states. Every call site must persist with a conditional
write (compare-and-swap on the state or a version column, see
flow_integrity.core.concurrency.apply_transition) and, when that write
loses a race, re-read the record and re-run validation against the
post-write state before retrying. Skipping this reintroduces the
payment/session desynchronization the checks exist to prevent.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from flow_integrity.domain.catalog import EntityType, parse_entity_type, parse_state
from flow_integrity.domain.failures import FailureKind, ValidationResult, fail
from flow_integrity.domain.synchronizer import (
    InvalidContextError,
    SyncContext,
    check_cross_entity,
    coerce_context,
)
from flow_integrity.domain.transitions import check_entity_transition

ContextInput = SyncContext | Mapping[str, Any] | None


def validate_transition(
    entity_type: str | EntityType,
    current_state: str | Enum,
    new_state: str | Enum,
    context: ContextInput = None,
) -> ValidationResult:
    """Validate a proposed state change.

    Runs the per-entity allow-list first; only if that passes and a
    synchronization context was supplied are the cross-entity rules checked.
    The first failure is returned; failures are never aggregated.

    Args:
        entity_type: "payment", "session" or "video"
        current_state: State the caller just read from storage
        new_state: State the caller wants to persist
        context: Optional current states of the other lifecycles
            (paymentState, sessionState, formsComplete)

    Returns:
        ValidationResult: ok, or the first failure encountered
    """
    result = check_entity_transition(entity_type, current_state, new_state)
    if not result.ok or context is None:
        return result

    entity = parse_entity_type(entity_type)
    current = parse_state(entity, current_state)
    new = parse_state(entity, new_state)

    try:
        sync_context = coerce_context(context)
    except InvalidContextError as exc:
        return fail(
            FailureKind.UNKNOWN_STATE,
            entity,
            current,
            new,
            str(exc),
            fields=(exc.field_name,),
        )

    return check_cross_entity(entity, current, new, sync_context)


def assert_transition(
    entity_type: str | EntityType,
    current_state: str | Enum,
    new_state: str | Enum,
    context: ContextInput = None,
) -> None:
    """Validate a proposed state change, raising on failure.

    Raises:
        StateTransitionError: If the transition is rejected
    """
    validate_transition(entity_type, current_state, new_state, context).raise_for_failure()
