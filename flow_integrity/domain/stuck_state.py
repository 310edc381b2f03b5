"""Stuck state detection.

A state that has lasted longer than multiplier × its expected duration
(2× by default) is stuck. Every stuck result names the resolution action
to take, so detection never ends at "something is wrong".

Expected durations are in minutes. Terminal states and states without a
limit are never stuck.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from flow_integrity.config import settings
from flow_integrity.core.exceptions import ValidationError
from flow_integrity.domain.catalog import EntityType, parse_entity_type, parse_state
from flow_integrity.domain.payment_state import PaymentState
from flow_integrity.domain.session_state import SessionState
from flow_integrity.domain.video_state import VideoState

EXPECTED_DURATIONS: dict[EntityType, dict[Enum, int]] = {
    EntityType.PAYMENT: {
        PaymentState.PENDING: 60,       # 1 hour to initiate payment
        PaymentState.INITIATED: 5,      # M-Pesa callback
        PaymentState.FAILED: 1440,      # cleanup after a day
    },
    EntityType.SESSION: {
        SessionState.REQUESTED: 1440,   # therapist response
        SessionState.APPROVED: 60,
        SessionState.PAYMENT_PENDING: 10,
        SessionState.PAID: 30,
        SessionState.READY: 60,
        SessionState.IN_PROGRESS: 90,
    },
    EntityType.VIDEO: {
        VideoState.WAITING_FOR_PARTICIPANTS: 15,
        VideoState.ACTIVE: 90,
    },
}

RESOLUTION_POLICIES: dict[EntityType, dict[Enum, str]] = {
    EntityType.PAYMENT: {
        PaymentState.PENDING: "alert_admin",
        PaymentState.INITIATED: "alert_admin_urgent",
        PaymentState.FAILED: "auto_cleanup",
    },
    EntityType.SESSION: {
        SessionState.REQUESTED: "alert_therapist",
        SessionState.APPROVED: "alert_client_payment",
        SessionState.PAYMENT_PENDING: "alert_admin_urgent",
        SessionState.PAID: "alert_client_forms",
        SessionState.READY: "alert_both_participants",
        SessionState.IN_PROGRESS: "auto_end_session",
    },
    EntityType.VIDEO: {
        VideoState.WAITING_FOR_PARTICIPANTS: "alert_both_participants",
        VideoState.ACTIVE: "auto_end_call",
    },
}

DEFAULT_RESOLUTION = "alert_admin"
NO_ACTION = "none"


@dataclass(frozen=True)
class StuckStateResult:
    entity_type: EntityType
    state: Enum
    is_stuck: bool
    state_age_minutes: int
    expected_minutes: int | None
    threshold_minutes: float | None
    recommended_action: str
    reason: str


def detect_stuck_state(
    entity_type: str | EntityType,
    state: str | Enum,
    entered_at: datetime,
    now: datetime | None = None,
    multiplier: float | None = None,
) -> StuckStateResult:
    """Check whether one entity has overstayed its current state.

    Args:
        entity_type: "payment", "session" or "video"
        state: Current state
        entered_at: When the state was entered (timezone-aware)
        now: Reference time, defaults to the current UTC time
        multiplier: Overrides the configured stuck threshold multiplier

    Raises:
        ValidationError: If entered_at or now is a naive datetime
    """
    entity = parse_entity_type(entity_type)
    current = parse_state(entity, state)
    now = now or datetime.now(UTC)
    if entered_at.tzinfo is None or now.tzinfo is None:
        raise ValidationError("entered_at and now must be timezone-aware datetimes")
    factor = multiplier if multiplier is not None else settings.stuck_threshold_multiplier
    age_minutes = max(0, int((now - entered_at).total_seconds() // 60))

    expected = EXPECTED_DURATIONS[entity].get(current)
    if expected is None:
        return StuckStateResult(
            entity_type=entity,
            state=current,
            is_stuck=False,
            state_age_minutes=age_minutes,
            expected_minutes=None,
            threshold_minutes=None,
            recommended_action=NO_ACTION,
            reason="Terminal state or no duration limit",
        )

    threshold = expected * factor
    is_stuck = age_minutes > threshold
    if is_stuck:
        action = RESOLUTION_POLICIES[entity].get(current, DEFAULT_RESOLUTION)
        reason = (
            f"State has lasted {age_minutes} minutes, exceeding {factor:g}× "
            f"expected duration of {expected} minutes"
        )
    else:
        action = NO_ACTION
        reason = f"State age {age_minutes} minutes is within acceptable range"

    return StuckStateResult(
        entity_type=entity,
        state=current,
        is_stuck=is_stuck,
        state_age_minutes=age_minutes,
        expected_minutes=expected,
        threshold_minutes=threshold,
        recommended_action=action,
        reason=reason,
    )


def analyze_session(
    payment: tuple[str | PaymentState, datetime] | None = None,
    session: tuple[str | SessionState, datetime] | None = None,
    video: tuple[str | VideoState, datetime] | None = None,
    now: datetime | None = None,
) -> list[StuckStateResult]:
    """Check every supplied lifecycle of one booking; returns only stuck ones.

    Each argument is a (state, entered_at) pair.
    """
    now = now or datetime.now(UTC)
    stuck: list[StuckStateResult] = []

    for entity, entry in (
        (EntityType.PAYMENT, payment),
        (EntityType.SESSION, session),
        (EntityType.VIDEO, video),
    ):
        if entry is None:
            continue
        state, entered_at = entry
        result = detect_stuck_state(entity, state, entered_at, now=now)
        if result.is_stuck:
            stuck.append(result)

    return stuck
