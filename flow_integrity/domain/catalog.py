"""State catalogs for the three booking lifecycles.

Each entity type has a closed enum of states, a terminal subset, and an
allow-list of transitions. Values outside a catalog are rejected, never
passed through.
"""

from enum import Enum

from flow_integrity.domain.payment_state import (
    PAYMENT_TERMINAL_STATES,
    PAYMENT_TRANSITIONS,
    PaymentState,
)
from flow_integrity.domain.session_state import (
    SESSION_TERMINAL_STATES,
    SESSION_TRANSITIONS,
    SessionState,
)
from flow_integrity.domain.video_state import (
    VIDEO_TERMINAL_STATES,
    VIDEO_TRANSITIONS,
    VideoState,
)


class EntityType(str, Enum):
    """Entities whose lifecycles are validated."""

    PAYMENT = "payment"
    SESSION = "session"
    VIDEO = "video"


STATE_ENUMS: dict[EntityType, type[Enum]] = {
    EntityType.PAYMENT: PaymentState,
    EntityType.SESSION: SessionState,
    EntityType.VIDEO: VideoState,
}

TRANSITIONS: dict[EntityType, dict] = {
    EntityType.PAYMENT: PAYMENT_TRANSITIONS,
    EntityType.SESSION: SESSION_TRANSITIONS,
    EntityType.VIDEO: VIDEO_TRANSITIONS,
}

TERMINAL_STATES: dict[EntityType, frozenset] = {
    EntityType.PAYMENT: PAYMENT_TERMINAL_STATES,
    EntityType.SESSION: SESSION_TERMINAL_STATES,
    EntityType.VIDEO: VIDEO_TERMINAL_STATES,
}


class UnknownStateError(ValueError):
    """Raised when a value is not part of an entity's catalog."""

    def __init__(self, entity_type: str, value: object) -> None:
        self.entity_type = entity_type
        self.value = value
        super().__init__(f"Unknown {entity_type} state: {value!r}")


class UnknownEntityTypeError(ValueError):
    """Raised when the entity type is not payment, session or video."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Unknown entity type: {value!r}")


def parse_entity_type(value: str | EntityType) -> EntityType:
    """Coerce a raw entity type into EntityType."""
    if isinstance(value, EntityType):
        return value
    try:
        return EntityType(value)
    except ValueError:
        raise UnknownEntityTypeError(value) from None


def parse_state(entity_type: str | EntityType, value: str | Enum) -> Enum:
    """Coerce a raw state value into the entity's state enum.

    Enum members of a different entity's catalog are rejected even when their
    string value happens to exist in this catalog.

    Raises:
        UnknownEntityTypeError: If the entity type is unknown
        UnknownStateError: If the value is not in the entity's catalog
    """
    entity = parse_entity_type(entity_type)
    state_enum = STATE_ENUMS[entity]

    if isinstance(value, state_enum):
        return value
    if isinstance(value, Enum) or not isinstance(value, str):
        raise UnknownStateError(entity.value, value)
    try:
        return state_enum(value)
    except ValueError:
        raise UnknownStateError(entity.value, value) from None


def is_valid_state(entity_type: str | EntityType, value: object) -> bool:
    """Check whether a value belongs to the entity's catalog."""
    try:
        parse_state(entity_type, value)  # type: ignore[arg-type]
    except (UnknownStateError, UnknownEntityTypeError):
        return False
    return True


def is_terminal(entity_type: str | EntityType, state: str | Enum) -> bool:
    """Check if a state is terminal (no further transitions allowed).

    Raises:
        UnknownStateError: If the state is not in the entity's catalog
    """
    entity = parse_entity_type(entity_type)
    return parse_state(entity, state) in TERMINAL_STATES[entity]


def all_states(entity_type: str | EntityType) -> list[Enum]:
    """Get every state of an entity in declaration order."""
    return list(STATE_ENUMS[parse_entity_type(entity_type)])
