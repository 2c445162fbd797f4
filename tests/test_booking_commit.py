"""Tests for BookingCommitter: validation, conflicts, idempotency, concurrency, timeouts."""

import itertools
import sqlite3
import threading
import time
from datetime import timedelta
from types import SimpleNamespace

import pytest

from bookingcore.exceptions import (
    CommitTimeout,
    ConfigMissing,
    SlotConflict,
    ValidationError,
)
from bookingcore.models.generated import AuditLog, BookingDayLocks, Bookings
from bookingcore.schemas.bookings import CustomerPayload
from bookingcore.services import booking_commit
from bookingcore.services.booking_commit import commit_booking
from bookingcore.services.slots import get_available_slots

from conftest import NOW, TODAY, make_block, make_booking, make_service, make_tenant

TOMORROW = TODAY + timedelta(days=1)
CUSTOMER = CustomerPayload(name="Noa Cohen", phone="+972 50-123-4567", email="noa@example.com")


def commit(db, tenant, service, start, key, day=TOMORROW, **kwargs):
    return commit_booking(
        db,
        tenant_id=tenant.id,
        service_id=service.id,
        target_date=day,
        start_time=start,
        customer=CUSTOMER,
        idempotency_key=key,
        now=NOW,
        **kwargs,
    )


class TestCommitSuccess:
    def test_creates_pending_booking(self, db, tenant, service):
        result = commit(db, tenant, service, "10:00", "key-1")

        assert result.created
        booking = result.booking
        assert booking.status == "pending"
        assert booking.booking_date == TOMORROW.isoformat()
        assert booking.booking_time == "10:00"
        assert booking.duration_minutes == 60
        assert booking.customer_phone == "+972501234567"

    def test_slot_disappears_from_read_path(self, db, tenant, service):
        commit(db, tenant, service, "10:00", "key-1")
        slots = {s.time: s for s in get_available_slots(db, tenant.id, service.id, TOMORROW, now=NOW)}
        assert not slots["10:00"].available
        assert not slots["09:30"].available
        assert slots["11:00"].available

    def test_confirmed_initial_status(self, db, tenant, service):
        result = commit(db, tenant, service, "10:00", "key-1", status="confirmed")
        assert result.booking.status == "confirmed"

    def test_writes_audit_and_bumps_lock_version(self, db, tenant, service):
        booking = commit(db, tenant, service, "10:00", "key-1").booking
        commit(db, tenant, service, "12:00", "key-2")

        audit = db.query(AuditLog).filter(AuditLog.booking_id == booking.id).all()
        assert [a.event_type for a in audit] == ["booking_created"]

        lock = db.get(BookingDayLocks, (tenant.id, TOMORROW.isoformat()))
        assert lock.version == 2

    def test_emits_booking_created(self, db, tenant, service, event_queue):
        booking = commit(db, tenant, service, "10:00", "key-1").booking

        assert event_queue.types() == ["booking_created"]
        queue, event = event_queue.pushed[0]
        assert queue == "events:p2p"
        assert event["booking_id"] == booking.id
        assert event["tenant_id"] == tenant.id

    def test_touching_booking_is_accepted(self, db, tenant, service):
        make_booking(db, tenant, service, TOMORROW, "10:00")
        assert commit(db, tenant, service, "11:00", "key-1").created
        assert commit(db, tenant, service, "09:00", "key-2").created


class TestCommitConflicts:
    def test_overlapping_booking(self, db, tenant, service, event_queue):
        make_booking(db, tenant, service, TOMORROW, "10:00")

        with pytest.raises(SlotConflict) as exc_info:
            commit(db, tenant, service, "10:30", "key-1")

        assert exc_info.value.conflicting_time == "10:00"
        assert db.query(Bookings).count() == 1
        assert event_queue.pushed == []

    def test_cancelled_booking_does_not_conflict(self, db, tenant, service):
        make_booking(db, tenant, service, TOMORROW, "10:00", status="cancelled")
        assert commit(db, tenant, service, "10:00", "key-1").created

    def test_blocked_range(self, db, tenant, service):
        make_block(db, tenant, TOMORROW, "11:00", "12:00", "maintenance")
        with pytest.raises(SlotConflict) as exc_info:
            commit(db, tenant, service, "10:30", "key-1")
        assert "maintenance" in str(exc_info.value)
        assert exc_info.value.conflicting_time == "11:00"

    def test_notice_window(self, db, tenant, service):
        with pytest.raises(SlotConflict):
            commit(db, tenant, service, "10:30", "key-1", day=TODAY)
        assert commit(db, tenant, service, "11:00", "key-2", day=TODAY).created

    def test_other_tenant_bookings_do_not_conflict(self, db, tenant, service):
        other = make_tenant(db, name="Other")
        make_booking(db, other, make_service(db, other), TOMORROW, "10:00")
        assert commit(db, tenant, service, "10:00", "key-1").created


class TestCommitValidation:
    def test_after_closing(self, db, tenant, service):
        with pytest.raises(ValidationError):
            commit(db, tenant, service, "17:30", "key-1")

    def test_before_opening(self, db, tenant, service):
        with pytest.raises(ValidationError):
            commit(db, tenant, service, "08:00", "key-1")

    def test_non_working_day(self, db):
        tenant = make_tenant(db, working_days=[1, 2, 3])  # Tue-Thu
        service = make_service(db, tenant)
        with pytest.raises(ValidationError):
            commit(db, tenant, service, "10:00", "key-1", day=TODAY)  # Monday

    def test_past_and_far_future(self, db, tenant, service):
        with pytest.raises(ValidationError):
            commit(db, tenant, service, "10:00", "key-1", day=TODAY - timedelta(days=1))
        with pytest.raises(ValidationError):
            commit(db, tenant, service, "10:00", "key-2", day=TODAY + timedelta(days=31))

    def test_missing_tenant(self, db, service):
        with pytest.raises(ValidationError):
            commit_booking(
                db, None, service.id, TOMORROW, "10:00", CUSTOMER, "key-1", now=NOW
            )

    def test_missing_idempotency_key(self, db, tenant, service):
        with pytest.raises(ValidationError):
            commit(db, tenant, service, "10:00", "  ")

    def test_invalid_initial_status(self, db, tenant, service):
        with pytest.raises(ValidationError):
            commit(db, tenant, service, "10:00", "key-1", status="cancelled")

    def test_unknown_service(self, db, tenant):
        with pytest.raises(ValidationError):
            commit(db, tenant, SimpleNamespace(id=9999), "10:00", "key-1")

    def test_missing_schedule_settings(self, db):
        tenant = make_tenant(db, with_settings=False)
        service = make_service(db, tenant)
        with pytest.raises(ConfigMissing):
            commit(db, tenant, service, "10:00", "key-1")
        assert db.query(Bookings).count() == 0


class TestIdempotency:
    def test_replay_returns_same_booking(self, db, tenant, service, event_queue):
        first = commit(db, tenant, service, "10:00", "key-1")
        second = commit(db, tenant, service, "10:00", "key-1")

        assert first.created
        assert not second.created
        assert second.booking.id == first.booking.id
        assert db.query(Bookings).count() == 1
        assert event_queue.types() == ["booking_created"]

    def test_key_reused_for_different_request(self, db, tenant, service):
        commit(db, tenant, service, "10:00", "key-1")
        with pytest.raises(ValidationError):
            commit(db, tenant, service, "14:00", "key-1")

    def test_same_key_in_other_tenant_is_independent(self, db, tenant, service):
        other = make_tenant(db, name="Other")
        other_service = make_service(db, other)
        commit(db, tenant, service, "10:00", "shared-key")
        assert commit(db, other, other_service, "10:00", "shared-key").created

    def test_replay_written_differently_is_the_same_request(self, db, tenant, service):
        first = commit(db, tenant, service, "10:00", "key-1")
        again = commit(db, tenant, service, "10:00:00", "key-1")

        assert not again.created
        assert again.booking.id == first.booking.id


class TestTimeNormalization:
    def test_start_time_is_stored_as_hh_mm(self, db, tenant, service):
        booking = commit(db, tenant, service, "9:00", "key-1").booking
        assert booking.booking_time == "09:00"

    def test_normalized_times_sort_chronologically(self, db, tenant, service):
        commit(db, tenant, service, "10:30", "key-1")
        commit(db, tenant, service, "9:00", "key-2")

        times = [
            b.booking_time
            for b in db.query(Bookings).filter(Bookings.tenant_id == tenant.id).order_by(Bookings.booking_time)
        ]
        assert times == ["09:00", "10:30"]

    def test_unnormalized_retry_still_conflicts(self, db, tenant, service):
        commit(db, tenant, service, "9:00", "key-1")
        with pytest.raises(SlotConflict) as exc_info:
            commit(db, tenant, service, "09:30", "key-2")
        assert exc_info.value.conflicting_time == "09:00"


class TestConcurrency:
    def test_overlapping_commits_have_one_winner(self, db, session_factory, tenant, service):
        times = ["10:00", "10:10", "10:20", "10:30", "10:40"]
        barrier = threading.Barrier(len(times))
        outcomes: list = []
        lock = threading.Lock()
        tenant_id, service_id = tenant.id, service.id

        def attempt(i, time):
            session = session_factory()
            try:
                barrier.wait()
                result = commit_booking(
                    session, tenant_id, service_id, TOMORROW, time, CUSTOMER, f"race-{i}", now=NOW
                )
                outcome = ("ok", result.booking.id)
            except SlotConflict as e:
                outcome = ("conflict", str(e))
            finally:
                session.close()
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=attempt, args=(i, t)) for i, t in enumerate(times)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        kinds = sorted(kind for kind, _ in outcomes)
        assert kinds == ["conflict"] * 4 + ["ok"]
        assert db.query(Bookings).count() == 1

    def test_different_dates_do_not_block_each_other(self, db, tenant, service):
        assert commit(db, tenant, service, "10:00", "key-1").created
        assert commit(db, tenant, service, "10:00", "key-2", day=TOMORROW + timedelta(days=1)).created


class TestTimeouts:
    def test_lock_wait_exceeded(self, db_path, session_factory, tenant, service):
        tenant_id, service_id = tenant.id, service.id
        blocker = sqlite3.connect(str(db_path), isolation_level=None)
        blocker.execute("BEGIN IMMEDIATE")
        session = session_factory()
        try:
            # engine busy timeout is 10 s; the call asks for 0.2 s
            started = time.monotonic()
            with pytest.raises(CommitTimeout):
                commit_booking(
                    session, tenant_id, service_id, TOMORROW, "10:00", CUSTOMER, "key-1",
                    now=NOW, timeout=0.2,
                )
            assert time.monotonic() - started < 2
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()
            session.close()

        check = session_factory()
        try:
            assert check.query(Bookings).count() == 0
        finally:
            check.close()

    def test_narrow_timeout_does_not_leak_to_next_caller(self, db_path, session_factory, engine, tenant, service):
        tenant_id, service_id = tenant.id, service.id
        blocker = sqlite3.connect(str(db_path), isolation_level=None)
        blocker.execute("BEGIN IMMEDIATE")
        session = session_factory()
        try:
            with pytest.raises(CommitTimeout):
                commit_booking(
                    session, tenant_id, service_id, TOMORROW, "10:00", CUSTOMER, "key-1",
                    now=NOW, timeout=0.2,
                )
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()
            session.close()

        with engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA busy_timeout").scalar() == 10_000

    def test_deadline_exceeded_rolls_back(self, db, tenant, service, monkeypatch, event_queue):
        ticks = itertools.count(0, 10)
        monkeypatch.setattr(booking_commit, "monotonic", lambda: next(ticks))

        with pytest.raises(CommitTimeout):
            commit(db, tenant, service, "10:00", "key-1", timeout=5)

        assert db.query(Bookings).count() == 0
        assert db.query(AuditLog).count() == 0
        assert event_queue.pushed == []

    def test_retry_after_timeout_succeeds(self, db, tenant, service, monkeypatch):
        ticks = itertools.count(0, 10)
        monkeypatch.setattr(booking_commit, "monotonic", lambda: next(ticks))
        with pytest.raises(CommitTimeout):
            commit(db, tenant, service, "10:00", "key-1", timeout=5)

        monkeypatch.setattr(booking_commit, "monotonic", time.monotonic)
        assert commit(db, tenant, service, "10:00", "key-1").created
