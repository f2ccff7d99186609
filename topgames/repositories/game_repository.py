"""Repository for the ``games`` table."""
from typing import Any, Dict, List, Optional, Tuple

from ..database import Game
from .base import BaseRepository


class GameRepository(BaseRepository):
    """Find, create, update and delete :class:`~topgames.database.Game` rows.

    Field dictionaries passed in use the API (camelCase) names, e.g.
    ``{'storeId': '123', 'platform': 'ios'}``; unknown keys are ignored.
    """

    def find_all(self) -> List[Game]:
        """Return every game ordered by id."""
        return self._run('list games',
                         lambda: self._session.query(Game).order_by(Game.id).all())

    def search(self, name: Optional[str] = None,
               platform: Optional[str] = None) -> List[Game]:
        """Return games matching every given filter.

        Args:
            name:     Substring matched case-insensitively against the name.
            platform: Exact platform value.
        """
        def _query():
            query = self._session.query(Game)
            if platform is not None:
                query = query.filter(Game.platform == platform)
            if name is not None:
                query = query.filter(Game.name.ilike(f'%{name}%'))
            return query.order_by(Game.id).all()

        return self._run('search games', _query)

    def get(self, game_id: int) -> Optional[Game]:
        """Return the game with primary key *game_id*, or ``None``."""
        return self._run('load game', self._session.get, Game, game_id)

    def count(self) -> int:
        return self._run('count games', lambda: self._session.query(Game).count())

    def create(self, fields: Dict[str, Any]) -> Game:
        """Insert a new game built from *fields* and return it."""
        game = Game(**Game.columns_from_fields(fields))
        self._session.add(game)
        self._commit('create game')
        self._session.refresh(game)
        return game

    def update(self, game: Game, fields: Dict[str, Any]) -> Game:
        """Overwrite the columns named in *fields* on *game*."""
        for column, value in Game.columns_from_fields(fields).items():
            setattr(game, column, value)
        self._commit(f'update game {game.id}')
        self._session.refresh(game)
        return game

    def delete(self, game: Game) -> None:
        """Hard-delete *game*."""
        self._session.delete(game)
        self._commit(f'delete game {game.id}')

    def find_or_create(self, where: Dict[str, Any],
                       defaults: Optional[Dict[str, Any]] = None) -> Tuple[Game, bool]:
        """Return the first game matching *where*, inserting one if none exists.

        The new row is built from *defaults* overlaid with *where* and is
        committed immediately.

        Returns:
            ``(game, created)`` where *created* is ``True`` when a row was
            inserted.
        """
        criteria = Game.columns_from_fields(where)
        existing = self._run(
            'look up game',
            lambda: self._session.query(Game).filter_by(**criteria).first())
        if existing is not None:
            return existing, False

        values = Game.columns_from_fields(defaults or {})
        values.update(criteria)
        game = Game(**values)
        self._session.add(game)
        self._commit('create game')
        return game, True
