from datetime import timedelta


def _thread_messages(db, broadcast_id):
    from gymcoach.models.message import ThreadMessage
    return db.query(ThreadMessage).filter(ThreadMessage.group_message_id == broadcast_id).all()


def _recipients(db, broadcast_id):
    from gymcoach.models.broadcast import BroadcastRecipient
    return db.query(BroadcastRecipient).filter(BroadcastRecipient.message_id == broadcast_id).all()


def test_fan_out_writes_one_message_and_recipient_per_client(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.models.broadcast import BroadcastStatus
    from gymcoach.services.broadcast_processor import ProcessOutcome, process_broadcast

    coach = make_coach()
    clients = [make_client(coach, name) for name in ("Ana", "Ben", "Cal")]
    make_client(coach, "Inactive", is_active=False)
    broadcast = make_broadcast(coach, title="Schedule change")

    result = process_broadcast(db_session, broadcast.id)
    assert result.outcome is ProcessOutcome.SENT
    assert result.recipient_count == 3

    db_session.expire_all()
    messages = _thread_messages(db_session, broadcast.id)
    assert {m.client_id for m in messages} == {c.id for c in clients}
    for message in messages:
        assert message.coach_id == coach.id
        assert message.sender_id == coach.id
        assert message.body == "Team session moved to 7am"

    recipients = _recipients(db_session, broadcast.id)
    assert {r.client_id for r in recipients} == {c.id for c in clients}
    assert all(r.sent_at is not None and r.confirmed_at is None for r in recipients)
    assert db_session.get(type(broadcast), broadcast.id).status == BroadcastStatus.SENT


def test_reprocessing_does_not_duplicate_messages(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.models.broadcast import Broadcast, BroadcastStatus
    from gymcoach.services.broadcast_processor import ProcessOutcome, process_broadcast

    coach = make_coach()
    make_client(coach)
    make_client(coach)
    broadcast = make_broadcast(coach)

    assert process_broadcast(db_session, broadcast.id).recipient_count == 2

    # Already sent: the claim fails and nothing is written
    again = process_broadcast(db_session, broadcast.id)
    assert again.outcome is ProcessOutcome.NOT_CLAIMED

    # Even if the status is forced back, existing recipients are skipped
    db_session.query(Broadcast).filter(Broadcast.id == broadcast.id).update(
        {"status": BroadcastStatus.SCHEDULED}, synchronize_session=False
    )
    db_session.commit()
    retried = process_broadcast(db_session, broadcast.id)
    assert retried.outcome is ProcessOutcome.SENT
    assert retried.recipient_count == 0

    db_session.expire_all()
    assert len(_thread_messages(db_session, broadcast.id)) == 2
    assert len(_recipients(db_session, broadcast.id)) == 2


def test_retry_only_reaches_clients_added_since(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.models.broadcast import Broadcast, BroadcastStatus
    from gymcoach.services.broadcast_processor import process_broadcast

    coach = make_coach()
    make_client(coach)
    broadcast = make_broadcast(coach)
    process_broadcast(db_session, broadcast.id)

    late_joiner = make_client(coach, "Late")
    db_session.query(Broadcast).filter(Broadcast.id == broadcast.id).update(
        {"status": BroadcastStatus.SCHEDULED}, synchronize_session=False
    )
    db_session.commit()

    retried = process_broadcast(db_session, broadcast.id)
    assert retried.recipient_count == 1
    db_session.expire_all()
    assert late_joiner.id in {r.client_id for r in _recipients(db_session, broadcast.id)}


def test_missing_broadcast_is_a_no_op(db_session):
    from gymcoach.services.broadcast_processor import ProcessOutcome, process_broadcast

    result = process_broadcast(db_session, "does-not-exist")
    assert result.outcome is ProcessOutcome.NOT_FOUND
    assert result.recipient_count == 0


def test_canceled_broadcast_is_not_processed(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.services import broadcast_store as store
    from gymcoach.services.broadcast_processor import ProcessOutcome, process_broadcast

    coach = make_coach()
    make_client(coach)
    broadcast = make_broadcast(coach)
    assert store.cancel_broadcast(db_session, broadcast.id, coach.id)
    db_session.commit()

    assert process_broadcast(db_session, broadcast.id).outcome is ProcessOutcome.NOT_CLAIMED
    assert _thread_messages(db_session, broadcast.id) == []


def test_failed_fan_out_rolls_back_and_stays_scheduled(db_session, make_coach, make_client, make_broadcast):
    import pytest
    from sqlalchemy.exc import IntegrityError

    from gymcoach.models.broadcast import BroadcastStatus
    from gymcoach.services.broadcast_processor import process_broadcast

    coach = make_coach()
    real_client = make_client(coach)
    # Unknown client id: the recipient row violates its foreign key
    broadcast = make_broadcast(coach, audience={"type": "clients", "ids": [real_client.id, "ghost-client"]})

    with pytest.raises(IntegrityError):
        process_broadcast(db_session, broadcast.id)

    db_session.expire_all()
    assert db_session.get(type(broadcast), broadcast.id).status == BroadcastStatus.SCHEDULED
    assert _thread_messages(db_session, broadcast.id) == []
    assert _recipients(db_session, broadcast.id) == []


def test_empty_audience_still_marks_sent(db_session, make_coach, make_broadcast):
    from gymcoach.models.broadcast import BroadcastStatus
    from gymcoach.services.broadcast_processor import ProcessOutcome, process_broadcast

    coach = make_coach()
    broadcast = make_broadcast(coach)

    result = process_broadcast(db_session, broadcast.id)
    assert result.outcome is ProcessOutcome.SENT
    assert result.recipient_count == 0
    db_session.expire_all()
    assert db_session.get(type(broadcast), broadcast.id).status == BroadcastStatus.SENT


def test_send_now_ignores_scheduled_time_but_checks_owner(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.core.utils import utcnow
    from gymcoach.services.broadcast_processor import ProcessOutcome, send_now

    coach = make_coach()
    other_coach = make_coach()
    make_client(coach)
    broadcast = make_broadcast(coach, scheduled_at=utcnow() + timedelta(days=2))

    assert send_now(db_session, broadcast.id, other_coach.id).outcome is ProcessOutcome.NOT_CLAIMED

    result = send_now(db_session, broadcast.id, coach.id)
    assert result.outcome is ProcessOutcome.SENT
    assert result.recipient_count == 1
