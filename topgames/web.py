"""
TopGames web API.

Flask application exposing the games CRUD endpoints and the populate
import.  Build it with :func:`create_app`; the session factory and feed
client are injected so tests can run against SQLite in memory and a fake
feed::

    app = create_app(Settings(database_url='sqlite:///:memory:'))
    client = app.test_client()
"""
import logging
from typing import Optional

from flask import Flask, current_app, g, jsonify, request, send_from_directory
from sqlalchemy.orm import sessionmaker

from . import __version__
from .config import Settings, load_settings
from .database import make_session_factory
from .errors import FeedImportError, GameNotFoundError, StoreError
from .repositories import GameRepository
from .services import FeedClient, GameService, ImportService

web_logger = logging.getLogger('topgames.web')

EXTENSION_KEY = 'topgames'


def create_app(settings: Optional[Settings] = None,
               session_factory: Optional[sessionmaker] = None,
               feed_client: Optional[FeedClient] = None) -> Flask:
    """Build the Flask application.

    Args:
        settings:        Configuration; read from the environment if omitted.
        session_factory: SQLAlchemy ``sessionmaker``; built from
                         ``settings.database_url`` if omitted.
        feed_client:     Client for the top-100 feeds; built from *settings*
                         if omitted.
    """
    settings = settings or load_settings()
    app = Flask(__name__, static_folder=settings.static_dir, static_url_path='')
    app.extensions[EXTENSION_KEY] = {
        'settings': settings,
        'session_factory': session_factory or make_session_factory(settings.database_url),
        'feed_client': feed_client or FeedClient.from_settings(settings),
    }
    app.teardown_appcontext(_close_session)
    _register_routes(app)
    return app


# ---------------------------------------------------------------------------
# Per-request wiring
# ---------------------------------------------------------------------------

def _session():
    if 'db' not in g:
        g.db = current_app.extensions[EXTENSION_KEY]['session_factory']()
    return g.db


def _close_session(exc=None):
    db = g.pop('db', None)
    if db is not None:
        db.close()


def _game_service() -> GameService:
    return GameService(GameRepository(_session()))


def _import_service() -> ImportService:
    feed_client = current_app.extensions[EXTENSION_KEY]['feed_client']
    return ImportService(feed_client, GameRepository(_session()))


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _error_response(message: str, exc: Exception, status: int):
    return jsonify({'error': message, 'details': str(exc)}), status


def _register_routes(app: Flask) -> None:

    @app.route('/')
    def index():
        """Serve the bundled front-end, if one is installed."""
        return send_from_directory(app.static_folder, 'index.html')

    @app.route('/api/status')
    def api_status():
        """Report whether the database is reachable."""
        try:
            total = GameRepository(_session()).count()
        except StoreError as e:
            web_logger.error('Status check failed: %s', e.cause)
            return jsonify({'ready': False, 'error': 'Database unavailable'}), 503
        return jsonify({'ready': True, 'version': __version__, 'total_games': total})

    @app.route('/api/openapi.json')
    def api_openapi_spec():
        """Serve the OpenAPI 3.0 specification as JSON."""
        try:
            from .openapi_spec import build_spec
            spec = build_spec(server_url=request.url_root.rstrip('/'))
            return jsonify(spec)
        except Exception as e:
            web_logger.error('Error building OpenAPI spec: %s', e)
            return jsonify({'error': 'Could not generate spec'}), 500

    # =======================================================================
    # Games
    # =======================================================================

    @app.route('/api/games', methods=['GET'])
    def api_list_games():
        try:
            games = _game_service().list_games()
        except StoreError as e:
            web_logger.error('There was an error querying games: %s', e.cause)
            return _error_response('There was an error querying games', e.cause, 500)
        return jsonify([game.to_dict() for game in games])

    @app.route('/api/games/search', methods=['POST'])
    def api_search_games():
        body = _json_body()
        try:
            games = _game_service().search(name=body.get('name'),
                                           platform=body.get('platform'))
        except StoreError as e:
            web_logger.error('There was an error searching games: %s', e.cause)
            return _error_response('There was an error searching games', e.cause, 400)
        return jsonify([game.to_dict() for game in games])

    @app.route('/api/games', methods=['POST'])
    def api_create_game():
        body = _json_body()
        try:
            game = _game_service().create(body)
        except StoreError as e:
            web_logger.error('There was an error creating a game: %s', e.cause)
            return _error_response('There was an error creating a game', e.cause, 400)
        web_logger.info('Created game %s (%s/%s)', game.id, game.platform, game.store_id)
        return jsonify(game.to_dict())

    @app.route('/api/games/<int:game_id>', methods=['PUT'])
    def api_update_game(game_id):
        body = _json_body()
        try:
            game = _game_service().update(game_id, body)
        except GameNotFoundError as e:
            web_logger.warning('Update of unknown game %s', game_id)
            return jsonify({'error': str(e)}), 404
        except StoreError as e:
            web_logger.error('Error updating game %s: %s', game_id, e.cause)
            return _error_response('There was an error updating the game', e.cause, 400)
        return jsonify(game.to_dict())

    @app.route('/api/games/<int:game_id>', methods=['DELETE'])
    def api_delete_game(game_id):
        try:
            deleted_id = _game_service().delete(game_id)
        except GameNotFoundError as e:
            web_logger.warning('Delete of unknown game %s', game_id)
            return jsonify({'error': str(e)}), 404
        except StoreError as e:
            web_logger.error('Error deleting game %s: %s', game_id, e.cause)
            return _error_response('There was an error deleting the game', e.cause, 400)
        web_logger.info('Deleted game %s', deleted_id)
        return jsonify({'id': deleted_id})

    # =======================================================================
    # Import
    # =======================================================================

    @app.route('/api/games/populate', methods=['POST'])
    def api_populate_games():
        try:
            summary = _import_service().populate()
        except (FeedImportError, StoreError) as e:
            web_logger.error('There was an error populating games: %s', e)
            details = str(e.cause) if e.cause is not None else str(e)
            return jsonify({'error': 'Failed to populate games', 'details': details}), 500
        return jsonify(summary.to_dict())
