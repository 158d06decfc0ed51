"""Session handling for the relational store, and app integration."""

from contextlib import contextmanager
from datetime import datetime
from typing import Generator, Optional

from flask import Flask
from pytz import UTC
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.session import Session

from ...logging import getLogger
from .models import db

logger = getLogger(__name__)


@contextmanager
def transaction() -> Generator:
    """
    Run the enclosed block in a transaction on the scoped session.

    Pending changes are committed when the block exits normally. On any
    exception the session is rolled back and the exception re-raised.
    """
    try:
        yield db.session
        # Nothing to do if the block already committed.
        if db.session.new or db.session.dirty or db.session.deleted:
            db.session.commit()
    except Exception as e:
        logger.error('Rolling back after failed transaction: %s', e)
        db.session.rollback()
        raise


def init_app(app: Optional[Flask]) -> None:
    """Bind the models to ``app``, defaulting to an in-memory database."""
    app.config.setdefault('SQLALCHEMY_DATABASE_URI', 'sqlite://')
    app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)
    db.init_app(app)


def current_session() -> Session:
    """The scoped SQLAlchemy session of the current app context."""
    return db.session


def is_available() -> bool:
    """Check whether the database answers a trivial query."""
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        logger.error('Database is unavailable: %s', e)
        return False
    return True


def create_all() -> None:
    """Create the clicker tables."""
    db.create_all()


def drop_all() -> None:
    """Drop the clicker tables."""
    db.drop_all()


def utc(t: datetime) -> datetime:
    """SQLite drops timezone info; stored times are always UTC."""
    if t.tzinfo is None:
        return t.replace(tzinfo=UTC)
    return t.astimezone(UTC)
