import logging
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import text
from sqlalchemy.engine import Engine

from .core.config import settings
from .db import models  # noqa: F401  (registers tables on SQLModel.metadata)

logger = logging.getLogger(__name__)

# Markers that identify a slot-guard violation in a driver error message
SLOT_GUARD_MARKERS = ("appointment_slot_conflict", "appointments_no_overlap")

_SQLITE_OVERLAP = """
    SELECT 1 FROM appointments a
    WHERE a.doctor_id = NEW.doctor_id
      AND a.appointment_date = NEW.appointment_date
      AND a.status <> 'cancelled'
      AND a.start_time < NEW.end_time
      AND a.end_time > NEW.start_time
"""

SQLITE_SLOT_GUARD = [
    f"""
    CREATE TRIGGER IF NOT EXISTS appointments_no_overlap_insert
    BEFORE INSERT ON appointments
    WHEN NEW.status <> 'cancelled'
    BEGIN
        SELECT RAISE(ABORT, 'appointment_slot_conflict')
        WHERE EXISTS ({_SQLITE_OVERLAP});
    END
    """,
    f"""
    CREATE TRIGGER IF NOT EXISTS appointments_no_overlap_update
    BEFORE UPDATE OF doctor_id, appointment_date, start_time, end_time, status ON appointments
    WHEN NEW.status <> 'cancelled'
    BEGIN
        SELECT RAISE(ABORT, 'appointment_slot_conflict')
        WHERE EXISTS ({_SQLITE_OVERLAP} AND a.id <> NEW.id);
    END
    """,
]

POSTGRES_SLOT_GUARD = [
    "CREATE EXTENSION IF NOT EXISTS btree_gist",
    """
    DO $$
    BEGIN
        IF NOT EXISTS (SELECT 1 FROM pg_constraint WHERE conname = 'appointments_no_overlap') THEN
            ALTER TABLE appointments ADD CONSTRAINT appointments_no_overlap
            EXCLUDE USING gist (
                doctor_id WITH =,
                tsrange(appointment_date + start_time, appointment_date + end_time) WITH &&
            ) WHERE (status <> 'cancelled');
        END IF;
    END
    $$;
    """,
]


def build_engine(db_url: str, echo: bool = False, **overrides) -> Engine:
    engine_kwargs = {}
    if db_url.startswith("sqlite"):
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False}
        })
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })
    engine_kwargs.update(overrides)
    return create_engine(db_url, echo=echo, **engine_kwargs)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def install_slot_guard(target: Engine) -> None:
    """Store-side exclusion of overlapping non-cancelled appointments per doctor and date."""
    dialect = target.dialect.name
    if dialect == "sqlite":
        statements = SQLITE_SLOT_GUARD
    elif dialect == "postgresql":
        statements = POSTGRES_SLOT_GUARD
    else:
        logger.warning(f"No appointment slot guard available for dialect {dialect}")
        return
    with target.begin() as conn:
        for stmt in statements:
            conn.execute(text(stmt))
    logger.info(f"Installed appointment slot guard ({dialect})")


def create_db_and_tables(target: Engine = None) -> None:
    target = target or engine
    SQLModel.metadata.create_all(target)
    install_slot_guard(target)


def get_session():
    with Session(engine) as session:
        yield session
