#!/usr/bin/env python3
"""
Command-line entry point for TopGames.

    topgames serve [--host HOST] [--port PORT]
    topgames populate
    topgames init-db
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from colorama import Fore, Style, just_fix_windows_console

from . import setup_logging
from .config import load_settings
from .database import make_engine, init_db, make_session_factory
from .errors import FeedImportError, StoreError
from .repositories import GameRepository
from .services import FeedClient, ImportService

logger = logging.getLogger('topgames.cli')


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='topgames',
                                     description='Mobile top games catalog API')
    parser.add_argument('--log-level', default=None,
                        help='Override TOPGAMES_LOG_LEVEL (DEBUG, INFO, ...)')
    sub = parser.add_subparsers(dest='command', required=True)

    serve = sub.add_parser('serve', help='Run the HTTP API')
    serve.add_argument('--host', default=None, help='Bind address')
    serve.add_argument('--port', type=int, default=None, help='Listen port')

    sub.add_parser('populate', help='Import the iOS and Android top-100 feeds once')
    sub.add_parser('init-db', help='Create the database tables')
    return parser


def _serve(settings, args) -> int:
    from .web import create_app
    host = args.host or settings.host
    port = args.port or settings.port
    app = create_app(settings)
    print(f"{Fore.GREEN}Server is up on http://{host}:{port}{Style.RESET_ALL}")
    app.run(host=host, port=port, debug=False)
    return 0


def _populate(settings) -> int:
    session_factory = make_session_factory(settings.database_url)
    session = session_factory()
    try:
        service = ImportService(FeedClient.from_settings(settings), GameRepository(session))
        summary = service.populate()
    except (FeedImportError, StoreError) as e:
        logger.error('There was an error populating games: %s', e)
        print(f"{Fore.RED}Failed to populate games: {e}{Style.RESET_ALL}", file=sys.stderr)
        return 1
    finally:
        session.close()
    print(json.dumps(summary.to_dict(), indent=2))
    print(f"{Fore.GREEN}{summary.created} created, {summary.skipped} already stored"
          f"{Style.RESET_ALL}", file=sys.stderr)
    return 0


def _init_db(settings) -> int:
    init_db(make_engine(settings.database_url))
    print(f"{Fore.GREEN}Database ready{Style.RESET_ALL}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Parse *argv* and run the selected command; returns the exit status."""
    just_fix_windows_console()
    args = _build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(args.log_level or settings.log_level)

    if args.command == 'serve':
        return _serve(settings, args)
    if args.command == 'populate':
        return _populate(settings)
    return _init_db(settings)


if __name__ == '__main__':
    sys.exit(main())
