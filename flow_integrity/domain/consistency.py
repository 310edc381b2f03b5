"""Snapshot consistency audit.

Transition validation guards writes; this module audits what is already
stored. Reconciliation jobs feed it the current payment, session and video
states of one booking and get back any incompatible pairs plus the
follow-up actions the combination calls for.
"""

from dataclasses import dataclass, field
from enum import Enum

from flow_integrity.domain.catalog import EntityType, parse_state
from flow_integrity.domain.payment_state import PaymentState
from flow_integrity.domain.session_state import SessionState
from flow_integrity.domain.video_state import VideoState


class RequiredAction(str, Enum):
    """Follow-up work implied by a stored state combination."""

    ALERT_CLIENT_RETRY = "alert_client_retry"
    ADVANCE_SESSION_TO_PAID = "advance_session_to_paid"
    ISSUE_REFUND = "issue_refund"
    END_VIDEO_CALL = "end_video_call"


PAYMENT_SESSION_COMPATIBILITY: dict[PaymentState, frozenset[SessionState]] = {
    PaymentState.PENDING: frozenset(
        {
            SessionState.REQUESTED,
            SessionState.APPROVED,
            SessionState.PAYMENT_PENDING,
            SessionState.CANCELLED,
        }
    ),
    PaymentState.INITIATED: frozenset({SessionState.PAYMENT_PENDING}),
    PaymentState.CONFIRMED: frozenset(
        {
            SessionState.PAYMENT_PENDING,  # webhook landed, session not advanced yet
            SessionState.PAID,
            SessionState.READY,
            SessionState.IN_PROGRESS,
            SessionState.COMPLETED,
        }
    ),
    PaymentState.FAILED: frozenset({SessionState.PAYMENT_PENDING, SessionState.CANCELLED}),
    PaymentState.REFUNDED: frozenset({SessionState.CANCELLED}),
}

SESSION_VIDEO_COMPATIBILITY: dict[SessionState, frozenset[VideoState]] = {
    SessionState.REQUESTED: frozenset({VideoState.NOT_STARTED}),
    SessionState.APPROVED: frozenset({VideoState.NOT_STARTED}),
    SessionState.PAYMENT_PENDING: frozenset({VideoState.NOT_STARTED}),
    SessionState.PAID: frozenset({VideoState.NOT_STARTED}),
    SessionState.READY: frozenset({VideoState.NOT_STARTED, VideoState.WAITING_FOR_PARTICIPANTS}),
    SessionState.IN_PROGRESS: frozenset({VideoState.WAITING_FOR_PARTICIPANTS, VideoState.ACTIVE}),
    SessionState.COMPLETED: frozenset({VideoState.ENDED}),
    SessionState.CANCELLED: frozenset({VideoState.NOT_STARTED, VideoState.ENDED}),
}


@dataclass(frozen=True)
class ConsistencyViolation:
    rule: str
    message: str


@dataclass(frozen=True)
class ConsistencyReport:
    """Audit outcome for one booking's stored states."""

    payment_state: PaymentState
    session_state: SessionState
    video_state: VideoState | None = None
    violations: tuple[ConsistencyViolation, ...] = field(default_factory=tuple)
    required_actions: tuple[RequiredAction, ...] = field(default_factory=tuple)

    @property
    def consistent(self) -> bool:
        return not self.violations


def _required_actions(
    payment: PaymentState, session: SessionState, video: VideoState | None
) -> list[RequiredAction]:
    actions: list[RequiredAction] = []
    if payment is PaymentState.FAILED and session is SessionState.PAYMENT_PENDING:
        actions.append(RequiredAction.ALERT_CLIENT_RETRY)
    if payment is PaymentState.CONFIRMED and session is SessionState.PAYMENT_PENDING:
        actions.append(RequiredAction.ADVANCE_SESSION_TO_PAID)
    if payment is PaymentState.CONFIRMED and session is SessionState.CANCELLED:
        actions.append(RequiredAction.ISSUE_REFUND)
    if video in (VideoState.WAITING_FOR_PARTICIPANTS, VideoState.ACTIVE) and session in (
        SessionState.COMPLETED,
        SessionState.CANCELLED,
    ):
        actions.append(RequiredAction.END_VIDEO_CALL)
    return actions


def check_consistency(
    payment_state: str | PaymentState,
    session_state: str | SessionState,
    video_state: str | VideoState | None = None,
) -> ConsistencyReport:
    """Audit a stored payment/session(/video) combination.

    Raises:
        UnknownStateError: If any value is outside its catalog
    """
    payment = parse_state(EntityType.PAYMENT, payment_state)
    session = parse_state(EntityType.SESSION, session_state)
    video = parse_state(EntityType.VIDEO, video_state) if video_state is not None else None

    violations: list[ConsistencyViolation] = []

    allowed_sessions = PAYMENT_SESSION_COMPATIBILITY[payment]
    if session not in allowed_sessions:
        violations.append(
            ConsistencyViolation(
                rule="payment_session_sync",
                message=(
                    f"payment={payment.value} is incompatible with session={session.value}; "
                    f"allowed session states: [{', '.join(sorted(s.value for s in allowed_sessions))}]"
                ),
            )
        )

    if video is not None:
        allowed_videos = SESSION_VIDEO_COMPATIBILITY[session]
        if video not in allowed_videos:
            violations.append(
                ConsistencyViolation(
                    rule="session_video_sync",
                    message=(
                        f"session={session.value} is incompatible with video={video.value}; "
                        f"allowed video states: [{', '.join(sorted(v.value for v in allowed_videos))}]"
                    ),
                )
            )

    return ConsistencyReport(
        payment_state=payment,
        session_state=session,
        video_state=video,
        violations=tuple(violations),
        required_actions=tuple(_required_actions(payment, session, video)),
    )
