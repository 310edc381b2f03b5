"""Payment state machine.

States: pending → initiated → confirmed → refunded, with failed reachable
from pending/initiated. A failed payment is closed; a retry opens a new
payment record.
"""

from enum import Enum


class PaymentState(str, Enum):
    """Payment lifecycle states."""

    PENDING = "pending"
    INITIATED = "initiated"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    REFUNDED = "refunded"


PAYMENT_TRANSITIONS: dict[PaymentState, set[PaymentState]] = {
    PaymentState.PENDING: {PaymentState.INITIATED, PaymentState.FAILED},
    PaymentState.INITIATED: {PaymentState.CONFIRMED, PaymentState.FAILED},
    PaymentState.CONFIRMED: {PaymentState.REFUNDED},
    PaymentState.FAILED: set(),
    PaymentState.REFUNDED: set(),
}

PAYMENT_TERMINAL_STATES: frozenset[PaymentState] = frozenset(
    {PaymentState.FAILED, PaymentState.REFUNDED}
)


def assert_payment_transition(current: str, target: str) -> None:
    """Validate a payment state transition.

    Args:
        current: Current payment status
        target: Target payment status

    Raises:
        StateTransitionError: If the transition is not allowed
    """
    from flow_integrity.domain.validation import assert_transition

    assert_transition("payment", current, target)
