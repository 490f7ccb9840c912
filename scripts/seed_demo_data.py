"""Seed the database with a demo coach, a small roster and a few broadcasts.

Creates 1 coach and 4 clients (one inactive), a workout, a broadcast that is
already due (the scheduler sends it on its first pass), one scheduled for
tomorrow, and a short thread between the coach and the first client.

Usage:
  python -m scripts.seed_demo_data                  # local SQLite
  python -m scripts.seed_demo_data --force           # wipe & reseed local
  python -m scripts.seed_demo_data --database-url "postgresql+psycopg2://..."  # target another DB
"""
import argparse
import sys
import os
from datetime import timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from gymcoach.core.security import get_password_hash
from gymcoach.core.utils import utcnow
from gymcoach.db.database import SessionLocal, engine as default_engine, Base
from gymcoach.models import (
    AuditLog, Broadcast, BroadcastRecipient, Client, ThreadMessage, User, UserRole, Workout,
)
from gymcoach.schemas.audience import AllClientsAudience, ClientListAudience
from gymcoach.schemas.broadcast import BroadcastCreate
from gymcoach.services.broadcast_store import add_thread_message, create_broadcast

DEMO_PASSWORD = "Lift2026!"

CLIENTS = [
    ("maya.ortiz@gymcoach.local", "Maya", "Ortiz", "Run a sub-25 5k", True),
    ("leo.park@gymcoach.local", "Leo", "Park", "First pull-up", True),
    ("nina.brooks@gymcoach.local", "Nina", "Brooks", "Deadlift bodyweight", True),
    ("owen.hale@gymcoach.local", "Owen", "Hale", "Back after injury", False),
]


def seed(force: bool = False, database_url: str | None = None):
    if database_url:
        eng = create_engine(database_url)
        Session = sessionmaker(autocommit=False, autoflush=False, bind=eng)
    else:
        eng = default_engine
        Session = SessionLocal
    Base.metadata.create_all(bind=eng)
    db = Session()
    try:
        if not force and db.query(User).count() > 0:
            print("Database already has users. Use --force to seed anyway.")
            return

        if force:
            # Delete all tables in dependency order
            db.query(BroadcastRecipient).delete()
            db.query(ThreadMessage).delete()
            db.query(Broadcast).delete()
            db.query(Workout).delete()
            db.query(Client).delete()
            db.query(AuditLog).delete()
            db.query(User).delete()
            db.commit()

        hashed = get_password_hash(DEMO_PASSWORD)
        now = utcnow()

        coach = User(
            email="sam.reyes@gymcoach.local",
            first_name="Sam",
            last_name="Reyes",
            role=UserRole.COACH,
            hashed_password=hashed,
        )
        db.add(coach)
        db.flush()

        roster = []
        for email, first, last, goals, active in CLIENTS:
            user = User(email=email, first_name=first, last_name=last, role=UserRole.CLIENT, hashed_password=hashed)
            db.add(user)
            db.flush()
            client = Client(user_id=user.id, coach_id=coach.id, goals=goals, is_active=active)
            db.add(client)
            db.flush()
            roster.append(client)

        workout = Workout(
            client_id=roster[0].id,
            coach_id=coach.id,
            name="Tempo run + core",
            description="20 min tempo, 3 rounds plank/dead bug",
            scheduled_date=now + timedelta(days=1),
        )
        db.add(workout)
        db.flush()

        create_broadcast(db, coach.id, BroadcastCreate(
            title="Holiday hours",
            body="The gym closes at 2pm on Friday. Plan your sessions!",
            scheduled_at=now - timedelta(minutes=5),
            audience=AllClientsAudience(),
            require_confirmation=True,
        ))
        create_broadcast(db, coach.id, BroadcastCreate(
            title="Tomorrow's session",
            body="Bring running shoes, we start outside.",
            scheduled_at=now + timedelta(days=1),
            audience=ClientListAudience(ids=[roster[0].id, roster[1].id]),
            workout_id=workout.id,
        ))

        thread = [
            (coach.id, "Welcome aboard, Maya! How are the legs after Monday?"),
            (roster[0].user_id, "Sore but good. Ready for more."),
            (coach.id, "Great. Easy spin today, tempo run tomorrow."),
        ]
        for i, (sender_id, body) in enumerate(thread):
            add_thread_message(
                db,
                coach_id=coach.id,
                client_id=roster[0].id,
                sender_id=sender_id,
                body=body,
                now=now - timedelta(hours=len(thread) - i),
            )

        db.commit()

        print("=" * 60)
        print("  GymCoach Demo Data Seeded Successfully!")
        print("=" * 60)
        print()
        print(f"  Password for all accounts: {DEMO_PASSWORD}")
        print()
        print("  COACH:")
        print("    sam.reyes@gymcoach.local")
        print()
        print("  CLIENTS:")
        for email, _, _, _, active in CLIENTS:
            print(f"    {email}{'' if active else '  (inactive)'}")
        print()
        print("  DATA:")
        print("    1 workout, 3 thread messages")
        print("    2 broadcasts (1 already due, 1 tomorrow)")
        print("=" * 60)

    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed GymCoach with demo data.")
    parser.add_argument("--force", action="store_true", help="Wipe existing data before seeding.")
    parser.add_argument("--database-url", help="Database URL (defaults to local DB from .env)")
    args = parser.parse_args()

    if args.database_url:
        print(f"Targeting: {args.database_url.split('@')[-1] if '@' in args.database_url else args.database_url}")
        confirm = input("This will write to an external database. Continue? [y/N] ")
        if confirm.lower() != "y":
            print("Aborted.")
            sys.exit(0)

    seed(force=args.force, database_url=args.database_url)
