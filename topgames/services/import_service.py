"""The populate import: top-100 feeds into the games table."""
import logging
from typing import Any, Dict, List

from ..database import PLATFORMS
from ..repositories.game_repository import GameRepository
from .feed_client import FeedClient
from .normalizer import map_game_payload, normalize_feed

SUCCESS_MESSAGE = 'Successfully populated database'


class ImportSummary:
    """Counters reported by one populate run."""

    def __init__(self, total_processed: int, valid_processed: int, created: int,
                 message: str = SUCCESS_MESSAGE) -> None:
        self.message = message
        self.total_processed = total_processed
        self.valid_processed = valid_processed
        self.created = created

    @property
    def skipped(self) -> int:
        return self.valid_processed - self.created

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'totalProcessed': self.total_processed,
            'validProcessed': self.valid_processed,
            'created': self.created,
            'skipped': self.skipped,
        }

    def __repr__(self) -> str:
        return (f'ImportSummary(total={self.total_processed}, valid={self.valid_processed}, '
                f'created={self.created}, skipped={self.skipped})')


class ImportService:
    """Fetches both feeds and inserts the games that are not stored yet.

    Rules
    -----
    * Records without a resolvable store id are dropped.
    * A game is identified by ``(storeId, platform)``; existing games are
      left untouched, never updated.
    * Inserts run one at a time and are committed individually, so each
      lookup sees the rows created before it.  A store failure part-way
      through leaves the earlier inserts in place.
    """

    def __init__(self, feed_client: FeedClient, repository: GameRepository) -> None:
        self._feeds = feed_client
        self._repo = repository
        self._log = logging.getLogger('topgames.import')

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def populate(self) -> ImportSummary:
        """Run the import once.

        Raises:
            FeedImportError: Either feed could not be loaded; nothing is
                written in that case.
            StoreError:      The database rejected a lookup or insert.
        """
        bodies = self._feeds.fetch_all()
        games = self.collect_games(bodies)
        valid_games = [game for game in games if game['storeId']]

        dropped = len(games) - len(valid_games)
        if dropped:
            self._log.warning("Games skipped due to missing storeId: %d", dropped)

        created = 0
        for game in valid_games:
            _, was_created = self._repo.find_or_create(
                {'storeId': game['storeId'], 'platform': game['platform']},
                defaults=game,
            )
            if was_created:
                created += 1

        summary = ImportSummary(len(games), len(valid_games), created)
        self._log.info("Populate finished: %r", summary)
        return summary

    @staticmethod
    def collect_games(bodies: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Normalize and map each feed body, iOS first then Android."""
        games: List[Dict[str, Any]] = []
        for platform in PLATFORMS:
            records = normalize_feed(bodies.get(platform))
            games.extend(map_game_payload(raw, platform) for raw in records)
        return games
