"""Optimistic concurrency for state writes.

Validation reads only its arguments, so two requests holding the same stale
current state can both pass. Writes therefore go through a conditional
UPDATE (compare-and-swap on the state column, optionally a version column);
a write that matches no row lost a race, and the caller must re-read and
re-validate against the post-write state before trying again.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import Table, update
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session
from sqlalchemy.sql.dml import Update

from flow_integrity.config import settings
from flow_integrity.core.exceptions import ConcurrentModificationError
from flow_integrity.domain.validation import ContextInput, validate_transition

logger = logging.getLogger(__name__)


def _value(state: Any) -> Any:
    return state.value if isinstance(state, Enum) else state


def build_guarded_update(
    table: Table,
    *,
    key: Any,
    expected_state: Any,
    new_state: Any,
    key_column: str = "id",
    state_column: str = "status",
    version_column: str | None = None,
    expected_version: int | None = None,
) -> Update:
    """Build a conditional UPDATE that only applies if the state is unchanged.

    Args:
        table: Table holding the record
        key: Primary key value of the record
        expected_state: State the caller validated against
        new_state: State to write
        key_column: Name of the key column
        state_column: Name of the state column
        version_column: Optional version column, bumped on write
        expected_version: Version the caller read (required with version_column)

    Returns:
        Update: Statement whose rowcount is 1 on success, 0 on a lost race
    """
    stmt = update(table).where(
        table.c[key_column] == key,
        table.c[state_column] == _value(expected_state),
    )
    values: dict[str, Any] = {state_column: _value(new_state)}

    if version_column is not None:
        if expected_version is None:
            raise ValueError("expected_version is required when version_column is set")
        stmt = stmt.where(table.c[version_column] == expected_version)
        values[version_column] = table.c[version_column] + 1

    return stmt.values(values)


def guarded_write(bind: Connection | Session, stmt: Update) -> bool:
    """Execute a guarded update; True if exactly one row changed."""
    result = bind.execute(stmt)
    return result.rowcount == 1


async def guarded_write_async(db: AsyncSession, stmt: Update) -> bool:
    """Execute a guarded update on an async session; True if one row changed."""
    result = await db.execute(stmt)
    return result.rowcount == 1


@dataclass(frozen=True)
class RecordSnapshot:
    """What a caller read from storage right before validating."""

    state: Any
    context: ContextInput = None
    version: int | None = None


def apply_transition(
    entity_type: str,
    new_state: Any,
    *,
    read_current: Callable[[], RecordSnapshot],
    write_if_current: Callable[[RecordSnapshot, Any], bool],
    max_attempts: int | None = None,
    resource: str = "Record",
    identifier: str | None = None,
) -> RecordSnapshot:
    """Validate and persist a transition with compare-and-swap semantics.

    Each attempt re-reads the record, validates against that fresh state and
    writes conditionally. A rejected transition raises immediately; a lost
    race is retried up to max_attempts times.

    Returns:
        RecordSnapshot: The snapshot the successful write was validated against

    Raises:
        StateTransitionError: If validation rejects the transition
        ConcurrentModificationError: If every attempt lost a race
    """
    attempts = max_attempts or settings.transition_max_attempts

    for attempt in range(1, attempts + 1):
        snapshot = read_current()
        validate_transition(
            entity_type, snapshot.state, new_state, snapshot.context
        ).raise_for_failure()

        if write_if_current(snapshot, new_state):
            return snapshot

        logger.info(
            f"Concurrent modification of {resource} {identifier or ''} "
            f"(attempt {attempt}/{attempts}, read state {_value(snapshot.state)}); re-validating"
        )

    logger.warning(
        f"Giving up on {entity_type} transition to {_value(new_state)} for "
        f"{resource} {identifier or ''} after {attempts} conflicting attempts"
    )
    raise ConcurrentModificationError(resource, identifier, attempts)
