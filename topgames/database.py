"""
Database model and engine helpers for TopGames.

A single ``games`` table holds every catalog entry, whether it was created
through the HTTP API or by the populate import.  Imported games are
identified by the ``(store_id, platform)`` pair.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, validates
from sqlalchemy.pool import StaticPool

logger = logging.getLogger('topgames.database')

PLATFORM_IOS = 'ios'
PLATFORM_ANDROID = 'android'
PLATFORMS = (PLATFORM_IOS, PLATFORM_ANDROID)

Base = declarative_base()

_TRUE_STRINGS = {'true', '1', 'yes', 'y', 't'}
_FALSE_STRINGS = {'false', '0', 'no', 'n', 'f', ''}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Game(Base):
    """A mobile game listed on one platform's store."""
    __tablename__ = 'games'

    # API (camelCase) field name -> column attribute
    API_FIELDS = {
        'publisherId': 'publisher_id',
        'name': 'name',
        'platform': 'platform',
        'storeId': 'store_id',
        'bundleId': 'bundle_id',
        'appVersion': 'app_version',
        'isPublished': 'is_published',
    }

    id = Column(Integer, primary_key=True)
    publisher_id = Column(String(255), nullable=True)
    name = Column(String(500), default='')
    platform = Column(String(16))  # 'ios' or 'android'
    store_id = Column(String(255))
    bundle_id = Column(String(255), nullable=True)
    app_version = Column(String(64), nullable=True)
    is_published = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Lookup index for find-or-create, not unique
    __table_args__ = (Index('ix_games_store_id_platform', 'store_id', 'platform'),)

    @validates('is_published')
    def _coerce_is_published(self, key, value):
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        return bool(value)

    @classmethod
    def columns_from_fields(cls, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Translate API field names in *fields* to column attribute names.

        Unknown keys are dropped.
        """
        return {cls.API_FIELDS[key]: value for key, value in fields.items()
                if key in cls.API_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase representation used by the HTTP API."""
        return {
            'id': self.id,
            'publisherId': self.publisher_id,
            'name': self.name,
            'platform': self.platform,
            'storeId': self.store_id,
            'bundleId': self.bundle_id,
            'appVersion': self.app_version,
            'isPublished': self.is_published,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f'<Game id={self.id} platform={self.platform} store_id={self.store_id}>'


def make_engine(database_url: str) -> Engine:
    """Create an engine for *database_url*.

    In-memory SQLite databases share a single connection so every session of
    the process sees the same data.
    """
    if database_url.startswith('sqlite') and ':memory:' in database_url:
        return create_engine(database_url, echo=False,
                             connect_args={'check_same_thread': False},
                             poolclass=StaticPool)
    if database_url.startswith('sqlite'):
        return create_engine(database_url, echo=False,
                             connect_args={'check_same_thread': False})
    return create_engine(database_url, echo=False)


def init_db(engine: Engine) -> None:
    """Create missing tables on *engine*."""
    Base.metadata.create_all(bind=engine)
    logger.info('Database tables initialized on %s', engine.url.render_as_string(hide_password=True))


def make_session_factory(database_url: str, create_tables: bool = True) -> sessionmaker:
    """Return a ``sessionmaker`` bound to a new engine for *database_url*."""
    engine = make_engine(database_url)
    if create_tables:
        init_db(engine)
    return sessionmaker(autoflush=False, bind=engine)
