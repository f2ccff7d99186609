"""Services package — expose all concrete services from one import."""
from .feed_client import FeedClient
from .game_service import GameService
from .import_service import ImportService, ImportSummary

__all__ = [
    'FeedClient',
    'GameService',
    'ImportService',
    'ImportSummary',
]
