"""Tests for stuck state detection."""

from datetime import datetime, timedelta

import pytest

from flow_integrity.core.exceptions import ValidationError
from flow_integrity.domain.catalog import EntityType, UnknownStateError
from flow_integrity.domain.stuck_state import NO_ACTION, analyze_session, detect_stuck_state


class TestDetectStuckState:
    """Tests for detect_stuck_state."""

    def test_initiated_payment_past_threshold(self, now):
        result = detect_stuck_state("payment", "initiated", now - timedelta(minutes=11), now=now)

        assert result.is_stuck is True
        assert result.expected_minutes == 5
        assert result.threshold_minutes == 10
        assert result.recommended_action == "alert_admin_urgent"
        assert "2×" in result.reason

    def test_exactly_at_threshold_is_not_stuck(self, now):
        result = detect_stuck_state("payment", "initiated", now - timedelta(minutes=10), now=now)

        assert result.is_stuck is False
        assert result.recommended_action == NO_ACTION

    def test_session_in_progress_too_long(self, now):
        result = detect_stuck_state("session", "in_progress", now - timedelta(hours=4), now=now)

        assert result.is_stuck is True
        assert result.recommended_action == "auto_end_session"
        assert result.state_age_minutes == 240

    def test_requested_session_within_a_day(self, now):
        result = detect_stuck_state("session", "requested", now - timedelta(hours=30), now=now)
        assert result.is_stuck is False

    @pytest.mark.parametrize(
        "entity_type,state",
        [("session", "completed"), ("video", "ended"), ("payment", "confirmed"), ("video", "not_started")],
    )
    def test_states_without_limit_are_never_stuck(self, now, entity_type, state):
        result = detect_stuck_state(entity_type, state, now - timedelta(days=30), now=now)

        assert result.is_stuck is False
        assert result.expected_minutes is None
        assert result.recommended_action == NO_ACTION

    def test_multiplier_override(self, now):
        result = detect_stuck_state(
            "payment", "initiated", now - timedelta(minutes=11), now=now, multiplier=3
        )

        assert result.is_stuck is False
        assert result.threshold_minutes == 15

    def test_future_entry_counts_as_zero_age(self, now):
        result = detect_stuck_state("video", "active", now + timedelta(minutes=5), now=now)
        assert result.state_age_minutes == 0

    def test_unknown_state_raises(self, now):
        with pytest.raises(UnknownStateError):
            detect_stuck_state("video", "ringing", now, now=now)

    def test_naive_entered_at_is_rejected(self, now):
        naive = datetime(2026, 3, 2, 11, 0)

        with pytest.raises(ValidationError) as exc_info:
            detect_stuck_state("payment", "initiated", naive, now=now)

        assert exc_info.value.status_code == 422
        assert "timezone-aware" in exc_info.value.detail

    def test_naive_now_is_rejected(self, now):
        with pytest.raises(ValidationError):
            detect_stuck_state("payment", "initiated", now, now=datetime(2026, 3, 2, 12, 0))


class TestAnalyzeSession:
    """Tests for analyze_session."""

    def test_only_stuck_entities_are_returned(self, now):
        stuck = analyze_session(
            payment=("confirmed", now - timedelta(days=2)),
            session=("payment_pending", now - timedelta(minutes=45)),
            video=("not_started", now - timedelta(days=2)),
            now=now,
        )

        assert [r.entity_type for r in stuck] == [EntityType.SESSION]
        assert stuck[0].recommended_action == "alert_admin_urgent"

    def test_nothing_supplied(self, now):
        assert analyze_session(now=now) == []

    def test_call_left_running(self, now):
        stuck = analyze_session(
            session=("in_progress", now - timedelta(minutes=200)),
            video=("active", now - timedelta(minutes=200)),
            now=now,
        )

        assert {r.recommended_action for r in stuck} == {"auto_end_session", "auto_end_call"}
