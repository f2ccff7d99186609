"""
TopGames catalog package.

Layered the same way throughout:

  topgames/repositories/  — persistence: SQLAlchemy access to the ``games`` table.
  topgames/services/      — business logic: feed normalization, the populate
                            import and the CRUD rules used by the HTTP layer.

``topgames.web.create_app`` is the integration point: it owns the session
factory and feed client, builds a repository per request and hands it to the
services, so nothing in the domain layer reaches for a global store handle.
"""
import logging

__version__ = '1.0.0'


def setup_logging(level: str = 'INFO') -> logging.Logger:
    """Configure the root TopGames logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger('topgames')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(numeric)
    return logger
