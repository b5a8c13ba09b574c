# server/tests/unit/test_notification_drain_service.py
# -------------------------------------------------------------------
# Drainer on SQLite with a fake e-mail provider:
# - FIFO selection, claim, per-row outcome, pacing between sends
# - stale `sending` rows, deferred rows (send_after)
# - batch-level store failures -> NotificationDrainError
# -------------------------------------------------------------------
import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from qualis.application.services.notification_drain_service import (
    RECIPIENT_EMAIL_MISSING,
    NotificationDrainer,
    NotificationDrainError,
    render_email,
)
from qualis.domain.notifications import NotificationChannel, NotificationStatus, QueuedNotification
from qualis.infrastructure.persistence.database.models import NotificationQueueItem
from qualis.infrastructure.persistence.store import StoreError

pytestmark = pytest.mark.unit

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _run(coro):
    return asyncio.run(coro)


def _row(id, recipient_id, minutes, **kw):
    kw.setdefault("channel", NotificationChannel.EMAIL)
    kw.setdefault("subject", f"Subject {id}")
    kw.setdefault("payload", {"body": f"Body {id}"})
    return NotificationQueueItem(
        id=id, recipient_id=recipient_id, created_at=T0 + timedelta(minutes=minutes), **kw
    )


def _statuses(Session):
    with Session() as s:
        return {r.id: r for r in s.scalars(select(NotificationQueueItem))}


def _drainer(store, provider, sleep, **kw):
    kw.setdefault("delay_seconds", 0.5)
    kw.setdefault("stale_after_minutes", 15)
    return NotificationDrainer(store, provider, sleep=sleep, default_subject="Qualis Digital update", **kw)


# --- happy path -----------------------------------------------------------------


def test_batch_is_sent_oldest_first_with_pacing(store, Session, seed, care_home_world, email_provider, no_sleep):
    # inserted out of order on purpose
    seed(_row("n-3", "o-1", 3), _row("n-1", "m-1", 1), _row("n-2", "m-2", 2))

    report = _run(_drainer(store, email_provider, no_sleep).drain(25))

    assert [r.id for r in report.results] == ["n-1", "n-2", "n-3"]
    assert [m["to"] for m in email_provider.sent] == ["m1@example.org", "m2@example.org", "o1@example.org"]
    assert report.processed == 3 and report.sent == 3 and report.failed == 0
    # one pause between two consecutive sends, none after the last
    assert no_sleep.delays == [0.5, 0.5]

    rows = _statuses(Session)
    for nid in ("n-1", "n-2", "n-3"):
        assert rows[nid].status == NotificationStatus.SENT
        assert rows[nid].sent_at is not None
        assert rows[nid].error_message is None


def test_real_pacing_between_sends(store, seed, care_home_world, email_provider):
    seed(_row("n-1", "m-1", 1), _row("n-2", "m-2", 2), _row("n-3", "o-1", 3))

    drainer = NotificationDrainer(store, email_provider, delay_seconds=0.5, stale_after_minutes=0)
    _run(drainer.drain(3))

    stamps = [m["at"] for m in email_provider.sent]
    assert len(stamps) == 3
    assert stamps[1] - stamps[0] >= 0.49
    assert stamps[2] - stamps[1] >= 0.49


def test_batch_size_limits_the_drain(store, Session, seed, care_home_world, email_provider, no_sleep):
    seed(_row("n-1", "m-1", 1), _row("n-2", "m-2", 2), _row("n-3", "o-1", 3))

    report = _run(_drainer(store, email_provider, no_sleep).drain(2))

    assert report.processed == 2
    assert _statuses(Session)["n-3"].status == NotificationStatus.QUEUED


def test_only_email_rows_are_drained(store, Session, seed, care_home_world, email_provider, no_sleep):
    seed(_row("n-1", "m-1", 1, channel=NotificationChannel.IN_APP), _row("n-2", "m-1", 2))

    report = _run(_drainer(store, email_provider, no_sleep).drain())

    assert [r.id for r in report.results] == ["n-2"]
    assert _statuses(Session)["n-1"].status == NotificationStatus.QUEUED


def test_email_content(store, seed, care_home_world, email_provider, no_sleep):
    seed(_row("n-1", "m-1", 1, subject="Incident logged: Ada", payload={"body": "line 1\nline 2"}))

    _run(_drainer(store, email_provider, no_sleep).drain())

    (msg,) = email_provider.sent
    assert msg["subject"] == "Incident logged: Ada"
    assert msg["text"] == "line 1\nline 2"
    assert msg["html"] == "line 1<br />line 2"


# --- failures -------------------------------------------------------------------


def test_one_failure_does_not_stop_the_batch(store, Session, seed, care_home_world, email_provider, no_sleep):
    seed(_row("n-1", "m-1", 1), _row("n-2", "m-2", 2), _row("n-3", "o-1", 3))
    email_provider.fail_for = {"m2@example.org"}

    report = _run(_drainer(store, email_provider, no_sleep).drain())

    assert report.as_dict() == {
        "processed": 3,
        "sent": 2,
        "failed": 1,
        "results": [
            {"id": "n-1", "status": "sent"},
            {"id": "n-2", "status": "failed", "error": "Resend API error (500): boom"},
            {"id": "n-3", "status": "sent"},
        ],
    }
    assert no_sleep.delays == [0.5, 0.5]

    rows = _statuses(Session)
    assert rows["n-2"].status == NotificationStatus.FAILED
    assert rows["n-2"].error_message == "Resend API error (500): boom"
    assert rows["n-2"].sent_at is None
    assert rows["n-3"].status == NotificationStatus.SENT


def test_missing_recipient_email(store, Session, seed, care_home_world, email_provider, no_sleep):
    seed(_row("n-1", "ghost", 1), _row("n-2", None, 2))

    report = _run(_drainer(store, email_provider, no_sleep).drain())

    assert [r.error for r in report.results] == [RECIPIENT_EMAIL_MISSING, RECIPIENT_EMAIL_MISSING]
    assert email_provider.sent == []
    rows = _statuses(Session)
    assert rows["n-1"].status == NotificationStatus.FAILED
    assert rows["n-1"].error_message == "Recipient email not found."


def test_status_write_failure_does_not_abort(store, seed, care_home_world, email_provider, no_sleep, monkeypatch):
    seed(_row("n-1", "m-1", 1), _row("n-2", "m-2", 2))

    async def boom(notification_id):
        raise StoreError("write failed")

    monkeypatch.setattr(store, "mark_notification_sent", boom)

    report = _run(_drainer(store, email_provider, no_sleep).drain())

    assert report.sent == 2
    assert len(email_provider.sent) == 2


@pytest.mark.parametrize(
    "method, message",
    [
        ("requeue_stale_notifications", "Unable to requeue stale notifications."),
        ("queued_notifications", "Unable to load queued notifications."),
        ("claim_notifications", "Unable to update notification status."),
        ("recipient_profiles", "Unable to load recipient profiles."),
    ],
)
def test_batch_level_errors(store, seed, care_home_world, email_provider, no_sleep, monkeypatch, method, message):
    seed(_row("n-1", "m-1", 1))

    async def boom(*args, **kwargs):
        raise StoreError("db down")

    monkeypatch.setattr(store, method, boom)

    with pytest.raises(NotificationDrainError) as exc:
        _run(_drainer(store, email_provider, no_sleep).drain())

    assert exc.value.message == message
    assert email_provider.sent == []


# --- queue states ---------------------------------------------------------------


def test_empty_queue(store, email_provider, no_sleep):
    report = _run(_drainer(store, email_provider, no_sleep).drain())

    assert report.as_dict() == {"processed": 0, "sent": 0, "failed": 0, "results": []}
    assert email_provider.sent == []
    assert no_sleep.delays == []


def test_rows_not_queued_are_ignored(store, Session, seed, care_home_world, email_provider, no_sleep):
    now = datetime.now(timezone.utc)
    seed(
        _row("n-1", "m-1", 1, status=NotificationStatus.SENDING, locked_at=now),
        _row("n-2", "m-1", 2, status=NotificationStatus.SENT),
        _row("n-3", "m-1", 3, status=NotificationStatus.FAILED),
        _row("n-4", "m-1", 4, status=NotificationStatus.CANCELLED),
    )

    report = _run(_drainer(store, email_provider, no_sleep).drain())

    assert report.processed == 0
    assert _statuses(Session)["n-1"].status == NotificationStatus.SENDING


def test_stale_sending_rows_are_requeued(store, Session, seed, care_home_world, email_provider, no_sleep):
    now = datetime.now(timezone.utc)
    seed(
        _row("stale", "m-1", 1, status=NotificationStatus.SENDING, locked_at=now - timedelta(minutes=30)),
        _row("fresh", "m-2", 2, status=NotificationStatus.SENDING, locked_at=now - timedelta(minutes=1)),
    )

    report = _run(_drainer(store, email_provider, no_sleep).drain())

    assert [r.id for r in report.results] == ["stale"]
    rows = _statuses(Session)
    assert rows["stale"].status == NotificationStatus.SENT
    assert rows["fresh"].status == NotificationStatus.SENDING


def test_stale_requeue_can_be_disabled(store, Session, seed, care_home_world, email_provider, no_sleep):
    now = datetime.now(timezone.utc)
    seed(_row("stale", "m-1", 1, status=NotificationStatus.SENDING, locked_at=now - timedelta(hours=2)))

    report = _run(_drainer(store, email_provider, no_sleep, stale_after_minutes=0).drain())

    assert report.processed == 0
    assert _statuses(Session)["stale"].status == NotificationStatus.SENDING


def test_deferred_rows_wait_for_send_after(store, Session, seed, care_home_world, email_provider, no_sleep):
    now = datetime.now(timezone.utc)
    seed(
        _row("later", "m-1", 1, send_after=now + timedelta(hours=1)),
        _row("due", "m-2", 2, send_after=now - timedelta(minutes=1)),
    )

    report = _run(_drainer(store, email_provider, no_sleep).drain())
    assert [r.id for r in report.results] == ["due"]

    future = _drainer(store, email_provider, no_sleep, clock=lambda: now + timedelta(hours=2))
    report = _run(future.drain())
    assert [r.id for r in report.results] == ["later"]


def test_claimed_elsewhere_rows_are_skipped(store, Session, seed, care_home_world, email_provider, no_sleep, monkeypatch):
    seed(_row("n-1", "m-1", 1), _row("n-2", "m-2", 2))
    real_claim = store.claim_notifications

    async def claim_only_second(ids):
        return await real_claim([i for i in ids if i == "n-2"])

    monkeypatch.setattr(store, "claim_notifications", claim_only_second)

    report = _run(_drainer(store, email_provider, no_sleep).drain())

    assert [r.id for r in report.results] == ["n-2"]
    assert [m["to"] for m in email_provider.sent] == ["m2@example.org"]


# --- rendering ------------------------------------------------------------------


def _queued(subject=None, payload=None):
    return QueuedNotification(
        id="n-1",
        recipient_id="m-1",
        channel=NotificationChannel.EMAIL,
        status=NotificationStatus.SENDING,
        subject=subject,
        payload=payload or {},
        created_at=T0,
    )


def test_render_email_subject_fallbacks():
    assert render_email(_queued("Row"), "Default").subject == "Row"
    assert render_email(_queued(None, {"subject": "Payload", "body": "x"}), "Default").subject == "Payload"
    assert render_email(_queued(None, {"body": "x"}), "Default").subject == "Default"


def test_render_email_body_fallbacks():
    msg = render_email(_queued("S", {"link": "/x"}), "Default")
    assert msg.text == '{\n  "link": "/x"\n}'
    assert msg.html == '{<br />  "link": "/x"<br />}'

    msg = render_email(_queued("S", {"body": "plain", "htmlBody": "<p>rich</p>"}), "Default")
    assert msg.text == "plain"
    assert msg.html == "<p>rich</p>"
