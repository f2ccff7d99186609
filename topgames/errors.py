"""Exception types shared by the repositories, services and HTTP layer."""


class TopGamesError(Exception):
    """Base class for every error raised by the catalog."""


class StoreError(TopGamesError):
    """Raised when the database rejects a read or write."""

    def __init__(self, message: str, cause: Exception = None) -> None:
        super().__init__(message)
        self.cause = cause


class GameNotFoundError(TopGamesError):
    """Raised when no game exists for the requested id."""

    def __init__(self, game_id: int) -> None:
        super().__init__(f'Game {game_id} not found')
        self.game_id = game_id


class FeedImportError(TopGamesError):
    """Raised when a top-games feed cannot be fetched or decoded."""

    def __init__(self, platform: str, url: str, cause: Exception) -> None:
        super().__init__(f'Could not load {platform} feed from {url}: {cause}')
        self.platform = platform
        self.url = url
        self.cause = cause
