from datetime import timedelta


def test_broadcast_messages_are_enriched(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.models.workout import Workout
    from gymcoach.services.broadcast_processor import process_broadcast
    from gymcoach.services.confirmation import confirm_broadcast
    from gymcoach.services.threads import get_thread

    coach = make_coach()
    roster_entry = make_client(coach)
    workout = Workout(client_id=roster_entry.id, coach_id=coach.id, name="Leg day")
    db_session.add(workout)
    db_session.commit()

    broadcast = make_broadcast(
        coach, title="Gym closed Friday", require_confirmation=True, workout_id=workout.id,
    )
    process_broadcast(db_session, broadcast.id)

    [entry] = get_thread(db_session, coach.id, roster_entry.id)
    assert entry["group_message_id"] == broadcast.id
    assert entry["group_message_title"] == "Gym closed Friday"
    assert entry["requires_confirmation"] is True
    assert entry["confirmed_at"] is None
    assert entry["workout_id"] == workout.id
    assert entry["workout_name"] == "Leg day"

    confirm_broadcast(db_session, broadcast.id, roster_entry.id)
    db_session.commit()
    [entry] = get_thread(db_session, coach.id, roster_entry.id)
    assert entry["confirmed_at"] is not None


def test_deleted_broadcast_leaves_plain_message(db_session, make_coach, make_client, make_broadcast):
    from gymcoach.models.broadcast import Broadcast
    from gymcoach.services.broadcast_processor import process_broadcast
    from gymcoach.services.threads import get_thread

    coach = make_coach()
    roster_entry = make_client(coach)
    broadcast_id = make_broadcast(coach, title="Old news").id
    process_broadcast(db_session, broadcast_id)

    db_session.query(Broadcast).filter(Broadcast.id == broadcast_id).delete(synchronize_session=False)
    db_session.commit()

    [entry] = get_thread(db_session, coach.id, roster_entry.id)
    assert entry["group_message_id"] == broadcast_id
    assert entry["body"] == "Team session moved to 7am"
    for key in ("group_message_title", "requires_confirmation", "confirmed_at", "workout_id", "workout_name"):
        assert key not in entry


def test_limit_returns_most_recent_oldest_first(db_session, make_coach, make_client):
    from gymcoach.core.utils import utcnow
    from gymcoach.services.broadcast_store import add_thread_message
    from gymcoach.services.threads import get_thread

    coach = make_coach()
    roster_entry = make_client(coach)
    start = utcnow() - timedelta(hours=1)
    for i in range(5):
        add_thread_message(
            db_session,
            coach_id=coach.id,
            client_id=roster_entry.id,
            sender_id=coach.id,
            body=f"message {i}",
            now=start + timedelta(minutes=i),
        )
    db_session.commit()

    assert [e["body"] for e in get_thread(db_session, coach.id, roster_entry.id, limit=2)] == [
        "message 3",
        "message 4",
    ]
    assert len(get_thread(db_session, coach.id, roster_entry.id)) == 5


def test_mark_read_only_touches_other_party(db_session, make_coach, make_client):
    from gymcoach.services.broadcast_store import add_thread_message
    from gymcoach.services.threads import mark_thread_read

    coach = make_coach()
    roster_entry = make_client(coach)
    add_thread_message(db_session, coach_id=coach.id, client_id=roster_entry.id, sender_id=coach.id, body="hi")
    add_thread_message(
        db_session, coach_id=coach.id, client_id=roster_entry.id, sender_id=roster_entry.user_id, body="hello",
    )
    db_session.commit()

    assert mark_thread_read(db_session, coach.id, roster_entry.id, reader_id=roster_entry.user_id) == 1
    db_session.commit()
    assert mark_thread_read(db_session, coach.id, roster_entry.id, reader_id=roster_entry.user_id) == 0
