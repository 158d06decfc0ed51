"""SQLAlchemy models for database integration."""

from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from pytz import UTC
from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, \
    Index, Integer, JSON, String
from sqlalchemy.orm import relationship

db: SQLAlchemy = SQLAlchemy()


def _now() -> datetime:
    return datetime.now(tz=UTC)


class DBUser(db.Model):
    """Persistence for :class:`domain.User`."""

    __tablename__ = 'user_account'

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), default=_now,
                        nullable=False)
    role_ids = Column(JSON, default=list, nullable=False)
    discord_id = Column(String(32), unique=True, nullable=False)
    discord_refresh_token = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)

    profile = relationship('DBProfile', uselist=False,
                           back_populates='user', lazy='joined')


class DBProfile(db.Model):
    """Persistence for :class:`domain.Profile`."""

    __tablename__ = 'profile'

    profile_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(ForeignKey('user_account.user_id'), unique=True,
                     nullable=False)
    name = Column(String(255), nullable=False)
    avatar_url = Column(String(255), nullable=False, default='')

    user = relationship('DBUser', back_populates='profile')


class DBActivityLog(db.Model):
    """Persistence for :class:`domain.ActivityLog`. Rows are never updated."""

    __tablename__ = 'activity_log'
    __table_args__ = (Index('ix_activity_log_user_log', 'user_id', 'log_id'),)

    log_id = Column(BigInteger().with_variant(Integer, 'sqlite'),
                    primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), default=_now,
                        nullable=False)
    user_id = Column(ForeignKey('user_account.user_id'), nullable=False)
    name = Column(String(64), nullable=False)
    data = Column(JSON, default=dict, nullable=False)


class DBProgram(db.Model):
    """Persistence for :class:`domain.Program`."""

    __tablename__ = 'program'
    __table_args__ = (
        Index('ix_program_build', 'file_type', 'os', 'arch', 'branch'),
    )

    program_id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), default=_now,
                        nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)
    file_type = Column(String(30), nullable=False)
    os = Column(String(30), nullable=False)
    arch = Column(String(10), nullable=False)
    branch = Column(String(255), nullable=False)
    files = Column(JSON, default=list, nullable=False)
