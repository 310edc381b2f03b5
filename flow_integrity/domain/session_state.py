"""Therapy session state machine.

States: requested → approved → payment_pending → paid → ready → in_progress → completed
Any state before in_progress may be cancelled. completed and cancelled are terminal.
"""

from enum import Enum


class SessionState(str, Enum):
    """Session booking lifecycle states."""

    REQUESTED = "requested"
    APPROVED = "approved"
    PAYMENT_PENDING = "payment_pending"
    PAID = "paid"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


SESSION_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.REQUESTED: {SessionState.APPROVED, SessionState.CANCELLED},
    SessionState.APPROVED: {SessionState.PAYMENT_PENDING, SessionState.CANCELLED},
    SessionState.PAYMENT_PENDING: {SessionState.PAID, SessionState.CANCELLED},
    SessionState.PAID: {SessionState.READY, SessionState.CANCELLED},
    SessionState.READY: {SessionState.IN_PROGRESS, SessionState.CANCELLED},
    SessionState.IN_PROGRESS: {SessionState.COMPLETED},
    SessionState.COMPLETED: set(),
    SessionState.CANCELLED: set(),
}

SESSION_TERMINAL_STATES: frozenset[SessionState] = frozenset(
    {SessionState.COMPLETED, SessionState.CANCELLED}
)

# States that require a confirmed payment on the session's payment record
PAYMENT_GATED_SESSION_STATES: frozenset[SessionState] = frozenset(
    {
        SessionState.PAID,
        SessionState.READY,
        SessionState.IN_PROGRESS,
        SessionState.COMPLETED,
    }
)

# Sessions in these states may open the video call
CALL_ELIGIBLE_SESSION_STATES: frozenset[SessionState] = frozenset(
    {SessionState.READY, SessionState.IN_PROGRESS}
)


def assert_session_transition(current: str, target: str) -> None:
    """Validate a session state transition without cross-entity context."""
    from flow_integrity.domain.validation import assert_transition

    assert_transition("session", current, target)
