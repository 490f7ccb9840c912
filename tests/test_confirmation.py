from datetime import timedelta


def test_first_confirmation_sticks(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.core.utils import utcnow
    from gymcoach.models.broadcast import BroadcastRecipient
    from gymcoach.services.broadcast_processor import process_broadcast
    from gymcoach.services.confirmation import confirm_broadcast

    coach = make_coach()
    roster_entry = make_client(coach)
    broadcast = make_broadcast(coach, require_confirmation=True)
    process_broadcast(db_session, broadcast.id)

    first_time = utcnow()
    assert confirm_broadcast(db_session, broadcast.id, roster_entry.id, now=first_time) is True
    assert confirm_broadcast(db_session, broadcast.id, roster_entry.id, now=first_time + timedelta(hours=1)) is False
    db_session.commit()

    db_session.expire_all()
    recipient = (
        db_session.query(BroadcastRecipient)
        .filter(BroadcastRecipient.message_id == broadcast.id, BroadcastRecipient.client_id == roster_entry.id)
        .one()
    )
    assert recipient.confirmed_at is not None
    assert recipient.confirmed_at.replace(tzinfo=None) == first_time.replace(tzinfo=None)


def test_confirm_without_recipient_row_is_a_no_op(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.models.broadcast import BroadcastRecipient
    from gymcoach.services.confirmation import confirm_broadcast

    coach = make_coach()
    roster_entry = make_client(coach)
    broadcast = make_broadcast(coach)

    assert confirm_broadcast(db_session, broadcast.id, roster_entry.id) is False
    assert confirm_broadcast(db_session, "missing-broadcast", roster_entry.id) is False
    assert db_session.query(BroadcastRecipient).filter(BroadcastRecipient.message_id == broadcast.id).count() == 0


def test_confirmation_is_left_to_the_caller_to_commit(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.models.broadcast import BroadcastRecipient
    from gymcoach.services.broadcast_processor import process_broadcast
    from gymcoach.services.confirmation import confirm_broadcast

    coach = make_coach()
    roster_entry = make_client(coach)
    broadcast_id = make_broadcast(coach, require_confirmation=True).id
    client_id = roster_entry.id
    process_broadcast(db_session, broadcast_id)

    assert confirm_broadcast(db_session, broadcast_id, client_id) is True
    db_session.rollback()

    recipient = (
        db_session.query(BroadcastRecipient)
        .filter(BroadcastRecipient.message_id == broadcast_id, BroadcastRecipient.client_id == client_id)
        .one()
    )
    assert recipient.confirmed_at is None
