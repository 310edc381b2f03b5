"""Tests for guarded (compare-and-swap) state writes."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, insert, select, update

from flow_integrity.core.concurrency import (
    RecordSnapshot,
    apply_transition,
    build_guarded_update,
    guarded_write,
    guarded_write_async,
)
from flow_integrity.core.exceptions import ConcurrentModificationError, StateTransitionError
from flow_integrity.domain.failures import FailureKind
from flow_integrity.domain.session_state import SessionState

metadata = MetaData()

sessions = Table(
    "sessions",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("status", String(32), nullable=False),
    Column("payment_status", String(32), nullable=False),
    Column("version", Integer, nullable=False, default=1),
)


@pytest.fixture
def conn():
    engine = create_engine("sqlite://")
    with engine.connect() as connection:
        metadata.create_all(connection)
        connection.execute(
            insert(sessions).values(
                id=1, status="payment_pending", payment_status="confirmed", version=1
            )
        )
        yield connection
    engine.dispose()


def _row(conn):
    return conn.execute(select(sessions).where(sessions.c.id == 1)).one()


def _reader(conn):
    def read_current() -> RecordSnapshot:
        row = _row(conn)
        return RecordSnapshot(
            state=row.status,
            context={"paymentState": row.payment_status},
            version=row.version,
        )

    return read_current


def _writer(conn):
    def write_if_current(snapshot: RecordSnapshot, new_state) -> bool:
        stmt = build_guarded_update(
            sessions,
            key=1,
            expected_state=snapshot.state,
            new_state=new_state,
            version_column="version",
            expected_version=snapshot.version,
        )
        return guarded_write(conn, stmt)

    return write_if_current


class TestGuardedUpdate:
    """Tests for build_guarded_update and guarded_write."""

    def test_applies_when_state_unchanged(self, conn):
        stmt = build_guarded_update(
            sessions, key=1, expected_state="payment_pending", new_state=SessionState.PAID
        )

        assert guarded_write(conn, stmt) is True
        assert _row(conn).status == "paid"

    def test_stale_state_matches_nothing(self, conn):
        stmt = build_guarded_update(sessions, key=1, expected_state="approved", new_state="paid")

        assert guarded_write(conn, stmt) is False
        assert _row(conn).status == "payment_pending"

    def test_version_is_checked_and_bumped(self, conn):
        stale = build_guarded_update(
            sessions,
            key=1,
            expected_state="payment_pending",
            new_state="paid",
            version_column="version",
            expected_version=0,
        )
        fresh = build_guarded_update(
            sessions,
            key=1,
            expected_state="payment_pending",
            new_state="paid",
            version_column="version",
            expected_version=1,
        )

        assert guarded_write(conn, stale) is False
        assert guarded_write(conn, fresh) is True
        assert _row(conn).version == 2

    def test_version_column_requires_expected_version(self):
        with pytest.raises(ValueError):
            build_guarded_update(
                sessions, key=1, expected_state="paid", new_state="ready", version_column="version"
            )

    def test_async_write(self):
        db = MagicMock()
        db.execute = AsyncMock(return_value=MagicMock(rowcount=1))
        stmt = build_guarded_update(sessions, key=1, expected_state="paid", new_state="ready")

        assert asyncio.run(guarded_write_async(db, stmt)) is True
        db.execute.assert_awaited_once_with(stmt)


class TestApplyTransition:
    """Validate-then-write loop with re-validation on conflict."""

    def test_uncontended_write(self, conn):
        snapshot = apply_transition(
            "session", "paid", read_current=_reader(conn), write_if_current=_writer(conn)
        )

        assert snapshot.state == "payment_pending"
        assert _row(conn).status == "paid"

    def test_retries_after_lost_race(self, conn):
        """A concurrent write that only bumps the version is re-read and retried."""
        write = _writer(conn)
        calls = []

        def racing_write(snapshot, new_state):
            if not calls:
                conn.execute(update(sessions).values(version=sessions.c.version + 1))
            calls.append(snapshot.version)
            return write(snapshot, new_state)

        apply_transition("session", "paid", read_current=_reader(conn), write_if_current=racing_write)

        assert calls == [1, 2]
        assert _row(conn).status == "paid"
        assert _row(conn).version == 3

    def test_revalidates_against_post_write_state(self, conn):
        """If the winner cancelled the session, the retry is rejected, not written."""
        write = _writer(conn)

        def racing_write(snapshot, new_state):
            conn.execute(
                update(sessions).values(status="cancelled", version=sessions.c.version + 1)
            )
            return write(snapshot, new_state)

        with pytest.raises(StateTransitionError) as exc_info:
            apply_transition(
                "session", "paid", read_current=_reader(conn), write_if_current=racing_write
            )

        assert exc_info.value.kind is FailureKind.TERMINAL_VIOLATION
        assert _row(conn).status == "cancelled"

    def test_rejected_transition_never_writes(self, conn):
        conn.execute(update(sessions).values(payment_status="pending"))
        write = MagicMock(return_value=True)

        with pytest.raises(StateTransitionError):
            apply_transition("session", "paid", read_current=_reader(conn), write_if_current=write)

        write.assert_not_called()

    def test_gives_up_after_max_attempts(self, conn):
        write = MagicMock(return_value=False)

        with pytest.raises(ConcurrentModificationError) as exc_info:
            apply_transition(
                "session",
                "paid",
                read_current=_reader(conn),
                write_if_current=write,
                max_attempts=3,
                resource="Session",
                identifier="1",
            )

        assert write.call_count == 3
        assert exc_info.value.status_code == 409
        assert exc_info.value.attempts == 3
