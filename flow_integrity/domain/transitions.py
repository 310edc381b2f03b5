"""Per-entity transition validation.

Closed-world matching: a (current, new) pair is legal only if the entity's
allow-list contains it. Self-transitions of non-terminal states are legal
(idempotent re-confirmation); nothing leaves a terminal state, not even
into itself.
"""

from enum import Enum
from functools import lru_cache

from flow_integrity.domain.catalog import (
    TERMINAL_STATES,
    TRANSITIONS,
    EntityType,
    UnknownEntityTypeError,
    UnknownStateError,
    all_states,
    parse_entity_type,
    parse_state,
)
from flow_integrity.domain.failures import VALID, FailureKind, ValidationResult, fail


def allowed_transitions(entity_type: str | EntityType) -> frozenset[tuple[Enum, Enum]]:
    """Get the full allow-list of (from, to) pairs for an entity.

    Includes self-edges of non-terminal states.
    """
    return _allow_list(parse_entity_type(entity_type))


@lru_cache
def _allow_list(entity: EntityType) -> frozenset[tuple[Enum, Enum]]:
    terminal = TERMINAL_STATES[entity]
    pairs: set[tuple[Enum, Enum]] = set()

    for source, targets in TRANSITIONS[entity].items():
        if source in terminal:
            continue
        pairs.add((source, source))
        pairs.update((source, target) for target in targets)

    return frozenset(pairs)


def get_valid_transitions(entity_type: str | EntityType, state: str | Enum) -> set[Enum]:
    """Get all states reachable in one step from a given state."""
    entity = parse_entity_type(entity_type)
    current = parse_state(entity, state)
    return {target for source, target in allowed_transitions(entity) if source == current}


def get_valid_sources(entity_type: str | EntityType, target: str | Enum) -> set[Enum]:
    """Get all states that can transition to the target state."""
    entity = parse_entity_type(entity_type)
    new = parse_state(entity, target)
    return {source for source, dest in allowed_transitions(entity) if dest == new}


def check_entity_transition(
    entity_type: str | EntityType,
    current_state: str | Enum,
    new_state: str | Enum,
) -> ValidationResult:
    """Decide whether one entity may move from current_state to new_state.

    Pure function of its three inputs.
    """
    try:
        entity = parse_entity_type(entity_type)
    except UnknownEntityTypeError as exc:
        return fail(
            FailureKind.UNKNOWN_STATE,
            entity_type,
            current_state,
            new_state,
            str(exc),
            fields=("entityType",),
        )

    try:
        current = parse_state(entity, current_state)
    except UnknownStateError as exc:
        return fail(
            FailureKind.UNKNOWN_STATE,
            entity,
            current_state,
            new_state,
            f"Invalid current state: {exc}",
            fields=("currentState",),
        )

    try:
        new = parse_state(entity, new_state)
    except UnknownStateError as exc:
        return fail(
            FailureKind.UNKNOWN_STATE,
            entity,
            current,
            new_state,
            f"Invalid new state: {exc}",
            fields=("newState",),
        )

    if current in TERMINAL_STATES[entity]:
        return fail(
            FailureKind.TERMINAL_VIOLATION,
            entity,
            current,
            new,
            f"{entity.value} is in terminal state {current.value}; no transitions allowed",
        )

    if (current, new) not in allowed_transitions(entity):
        allowed = sorted(state.value for state in get_valid_transitions(entity, current))
        return fail(
            FailureKind.FORBIDDEN_EDGE,
            entity,
            current,
            new,
            f"Forbidden {entity.value} transition: {current.value} → {new.value}. "
            f"Allowed transitions: [{', '.join(allowed)}]",
        )

    return VALID


def transition_matrix(entity_type: str | EntityType) -> dict[tuple[str, str], bool]:
    """Evaluate every (from, to) pair of an entity's catalog."""
    entity = parse_entity_type(entity_type)
    states = all_states(entity)
    return {
        (source.value, target.value): check_entity_transition(entity, source, target).ok
        for source in states
        for target in states
    }
