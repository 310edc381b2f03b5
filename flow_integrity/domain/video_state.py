"""Video call state machine.

Forward only: not_started → waiting_for_participants → active → ended.
A waiting room nobody joins may be ended directly. Nothing re-enters not_started.
"""

from enum import Enum


class VideoState(str, Enum):
    """Video call lifecycle states."""

    NOT_STARTED = "not_started"
    WAITING_FOR_PARTICIPANTS = "waiting_for_participants"
    ACTIVE = "active"
    ENDED = "ended"


VIDEO_TRANSITIONS: dict[VideoState, set[VideoState]] = {
    VideoState.NOT_STARTED: {VideoState.WAITING_FOR_PARTICIPANTS},
    VideoState.WAITING_FOR_PARTICIPANTS: {VideoState.ACTIVE, VideoState.ENDED},
    VideoState.ACTIVE: {VideoState.ENDED},
    VideoState.ENDED: set(),
}

VIDEO_TERMINAL_STATES: frozenset[VideoState] = frozenset({VideoState.ENDED})


def assert_video_transition(current: str, target: str) -> None:
    """Validate a video call state transition without cross-entity context."""
    from flow_integrity.domain.validation import assert_transition

    assert_transition("video", current, target)
