"""Repository base class used by all concrete repositories."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import StoreError


class BaseRepository:
    """Wraps a SQLAlchemy session supplied by the caller.

    The caller owns the session lifecycle (the Flask app opens one per
    request, the CLI one per command).  Sub-classes call :meth:`_commit` after
    staging changes; a failed commit is rolled back and surfaced as
    :class:`~topgames.errors.StoreError` so the session stays usable.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._log = logging.getLogger(f'topgames.repository.{type(self).__name__}')

    @property
    def session(self) -> Session:
        return self._session

    def _commit(self, action: str) -> None:
        """Commit the current transaction, translating failures."""
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            self._log.error("Could not %s: %s", action, exc)
            raise StoreError(f'Could not {action}', exc) from exc

    def _run(self, action: str, fn, *args, **kwargs):
        """Call *fn* and translate SQLAlchemy errors into :class:`StoreError`."""
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            self._session.rollback()
            self._log.error("Could not %s: %s", action, exc)
            raise StoreError(f'Could not {action}', exc) from exc
