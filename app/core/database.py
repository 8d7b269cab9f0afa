# app/core/database.py
import logging

from fastapi import Request
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def ensure_schema(engine: Engine) -> None:
    """Create the tables if absent and bring older ``tickets`` tables up to date.

    Safe to run any number of times, including concurrently from several
    processes: a column added by someone else in the meantime counts as done.
    """
    # models must be registered on Base before create_all
    from app.ticket import models  # noqa: F401

    Base.metadata.create_all(bind=engine)

    columns = {c["name"] for c in inspect(engine).get_columns("tickets")}
    if "notes" in columns:
        return
    try:
        with engine.begin() as conn:
            conn.execute(text("ALTER TABLE tickets ADD COLUMN notes TEXT NOT NULL DEFAULT ''"))
        logger.info("Added notes column to tickets table")
    except (OperationalError, ProgrammingError) as exc:
        message = str(exc.orig).lower()
        if "duplicate column" not in message and "already exists" not in message:
            raise
        logger.info("notes column already present on tickets table")


# Common DB dependency
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
