from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from gymcoach.core.config import settings

_is_sqlite = settings.database_url.startswith("sqlite")

# The broadcast scheduler writes from its own thread while requests are being
# served, so SQLite connections must be shareable and wait on the write lock.
if _is_sqlite:
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False, "timeout": 15},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(settings.database_url, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
