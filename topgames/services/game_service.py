"""Business logic for the games CRUD endpoints."""
from typing import Any, Dict, List, Optional

from ..database import Game
from ..errors import GameNotFoundError
from ..repositories.game_repository import GameRepository

WRITABLE_FIELDS = ('publisherId', 'name', 'platform', 'storeId',
                   'bundleId', 'appVersion', 'isPublished')


def _clean_filter(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class GameService:
    """Create, read, update and delete games, delegating persistence to
    :class:`~topgames.repositories.game_repository.GameRepository`.

    Rules
    -----
    * Request bodies are reduced to the writable game fields; values are
      not validated.
    * Only fields present in an update body are changed.
    * Search filters are trimmed; blank filters are ignored and the
      platform filter is lowercased.
    """

    def __init__(self, repository: GameRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_games(self) -> List[Game]:
        return self._repo.find_all()

    def search(self, name: Any = None, platform: Any = None) -> List[Game]:
        """Return games whose name contains *name* and whose platform is *platform*.

        Args:
            name:     Substring to look for (case-insensitive).
            platform: Platform filter, compared after lowercasing.
        """
        platform = _clean_filter(platform)
        return self._repo.search(
            name=_clean_filter(name),
            platform=platform.lower() if platform else None,
        )

    def get(self, game_id: int) -> Game:
        """Return game *game_id*.

        Raises:
            GameNotFoundError: No such game.
        """
        game = self._repo.get(game_id)
        if game is None:
            raise GameNotFoundError(game_id)
        return game

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, body: Dict[str, Any]) -> Game:
        return self._repo.create(self._writable(body))

    def update(self, game_id: int, body: Dict[str, Any]) -> Game:
        """Apply the writable fields in *body* to game *game_id*.

        Raises:
            GameNotFoundError: No such game.
        """
        game = self.get(game_id)
        return self._repo.update(game, self._writable(body))

    def delete(self, game_id: int) -> int:
        """Hard-delete game *game_id* and return its id.

        Raises:
            GameNotFoundError: No such game.
        """
        game = self.get(game_id)
        self._repo.delete(game)
        return game_id

    @staticmethod
    def _writable(body: Dict[str, Any]) -> Dict[str, Any]:
        return {key: body[key] for key in WRITABLE_FIELDS if key in body}
