#!/usr/bin/env python3
"""
Unit tests for the topgames/repositories and topgames/services layer.

Run with:
    python -m pytest tests/test_services.py
"""
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.exc import OperationalError

from topgames.database import Game, make_session_factory
from topgames.errors import FeedImportError, GameNotFoundError, StoreError
from topgames.repositories import GameRepository
from topgames.services import GameService, ImportService


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fake_feeds(ios, android):
    """Return a stand-in FeedClient whose fetch_all yields the given bodies."""
    client = MagicMock()
    client.fetch_all.return_value = {'ios': ios, 'android': android}
    return client


class DBMixin(unittest.TestCase):
    """Gives each test a fresh in-memory database and a repository on it."""

    def setUp(self):
        self.session_factory = make_session_factory('sqlite:///:memory:')
        self.session = self.session_factory()
        self.repo = GameRepository(self.session)

    def tearDown(self):
        self.session.close()
        self.session_factory.kw['bind'].dispose()

    def _add(self, **fields):
        return self.repo.create(fields)


# ===========================================================================
# Repository tests
# ===========================================================================

class TestGameRepository(DBMixin):

    def test_starts_empty(self):
        self.assertEqual(self.repo.find_all(), [])
        self.assertEqual(self.repo.count(), 0)

    def test_create_and_get(self):
        game = self._add(name='Foo', platform='ios', storeId='123')
        loaded = self.repo.get(game.id)
        self.assertEqual(loaded.name, 'Foo')
        self.assertEqual(loaded.store_id, '123')
        self.assertTrue(loaded.is_published)

    def test_get_missing_returns_none(self):
        self.assertIsNone(self.repo.get(999))

    def test_create_ignores_unknown_fields(self):
        game = self._add(name='Foo', colour='red')
        self.assertEqual(game.name, 'Foo')

    def test_update_only_given_fields(self):
        game = self._add(name='Foo', platform='ios', storeId='1', appVersion='1.0')
        self.repo.update(game, {'appVersion': '2.0'})
        loaded = self.repo.get(game.id)
        self.assertEqual(loaded.app_version, '2.0')
        self.assertEqual(loaded.name, 'Foo')

    def test_delete(self):
        game = self._add(name='Foo')
        self.repo.delete(game)
        self.assertEqual(self.repo.count(), 0)

    def test_search_by_platform_and_name(self):
        self._add(name='Candy Crush', platform='ios', storeId='1')
        self._add(name='Candy Saga', platform='android', storeId='2')
        self._add(name='Clash', platform='ios', storeId='3')
        names = [g.name for g in self.repo.search(name='Candy', platform='ios')]
        self.assertEqual(names, ['Candy Crush'])

    def test_search_without_filters_returns_all(self):
        self._add(name='A')
        self._add(name='B')
        self.assertEqual(len(self.repo.search()), 2)

    def test_find_or_create_inserts_once(self):
        where = {'storeId': '123', 'platform': 'ios'}
        game, created = self.repo.find_or_create(where, defaults={'name': 'Foo', **where})
        self.assertTrue(created)
        again, created_again = self.repo.find_or_create(where, defaults={'name': 'Other'})
        self.assertFalse(created_again)
        self.assertEqual(again.id, game.id)
        self.assertEqual(again.name, 'Foo')
        self.assertEqual(self.repo.count(), 1)

    def test_find_or_create_same_store_id_other_platform(self):
        self.repo.find_or_create({'storeId': '1', 'platform': 'ios'})
        _, created = self.repo.find_or_create({'storeId': '1', 'platform': 'android'})
        self.assertTrue(created)
        self.assertEqual(self.repo.count(), 2)

    def test_is_published_strings_are_coerced(self):
        self.assertIs(self._add(isPublished='false').is_published, False)
        self.assertIs(self._add(isPublished='TRUE').is_published, True)
        self.assertIs(self._add(isPublished=0).is_published, False)

    def test_commit_failure_raises_store_error(self):
        with patch.object(self.session, 'commit',
                          side_effect=OperationalError('INSERT', {}, Exception('disk full'))):
            with self.assertRaises(StoreError) as ctx:
                self._add(name='Foo')
        self.assertIsInstance(ctx.exception.cause, OperationalError)

    def test_to_dict_uses_api_names(self):
        data = self._add(name='Foo', platform='ios', storeId='1', bundleId='b').to_dict()
        for key in ('id', 'publisherId', 'name', 'platform', 'storeId',
                    'bundleId', 'appVersion', 'isPublished', 'createdAt', 'updatedAt'):
            self.assertIn(key, data)
        self.assertEqual(data['bundleId'], 'b')


# ===========================================================================
# GameService tests
# ===========================================================================

class TestGameService(DBMixin):

    def _make(self):
        return GameService(self.repo)

    def test_create_keeps_only_writable_fields(self):
        game = self._make().create({'name': 'Foo', 'platform': 'ios', 'id': 77, 'junk': 1})
        self.assertNotEqual(game.id, 77)
        self.assertEqual(game.name, 'Foo')

    def test_search_trims_and_lowercases_platform(self):
        svc = self._make()
        svc.create({'name': 'Candy Crush', 'platform': 'ios'})
        svc.create({'name': 'Candy Saga', 'platform': 'ios'})
        self.assertEqual(len(svc.search(name='  candy ', platform=' IOS ')), 2)
        self.assertEqual(svc.search(name='candy', platform='android'), [])

    def test_blank_filters_are_ignored(self):
        svc = self._make()
        svc.create({'name': 'Foo', 'platform': 'ios'})
        self.assertEqual(len(svc.search(name='   ', platform='')), 1)
        self.assertEqual(len(svc.search(name=None, platform=42)), 1)

    def test_update_missing_raises(self):
        with self.assertRaises(GameNotFoundError):
            self._make().update(404, {'name': 'x'})

    def test_delete_missing_raises(self):
        with self.assertRaises(GameNotFoundError):
            self._make().delete(404)

    def test_delete_returns_id(self):
        svc = self._make()
        game = svc.create({'name': 'Foo'})
        self.assertEqual(svc.delete(game.id), game.id)
        self.assertEqual(svc.list_games(), [])


# ===========================================================================
# ImportService tests
# ===========================================================================

class TestImportService(DBMixin):

    def _make(self, ios, android):
        return ImportService(_fake_feeds(ios, android), self.repo)

    def test_single_ios_game(self):
        summary = self._make([{'app_id': '123', 'name': 'Foo'}], []).populate()
        self.assertEqual(summary.to_dict(), {
            'message': 'Successfully populated database',
            'totalProcessed': 1,
            'validProcessed': 1,
            'created': 1,
            'skipped': 0,
        })
        game = self.repo.find_all()[0]
        self.assertEqual(game.store_id, '123')
        self.assertEqual(game.platform, 'ios')
        self.assertEqual(game.name, 'Foo')
        self.assertTrue(game.is_published)

    def test_nested_games_wrapper(self):
        self._make({'games': [[{'id': 1}, {'id': 2}]]}, []).populate()
        self.assertEqual(sorted(g.store_id for g in self.repo.find_all()), ['1', '2'])

    def test_records_without_identifier_are_dropped(self):
        with self.assertLogs('topgames.import', level='WARNING') as logs:
            summary = self._make([{'name': 'No id'}, {'id': 'x'}], []).populate()
        self.assertEqual(summary.total_processed, 2)
        self.assertEqual(summary.valid_processed, 1)
        self.assertEqual(self.repo.count(), 1)
        self.assertIn('missing storeId: 1', logs.output[0])

    def test_second_run_creates_nothing(self):
        ios = [{'id': 1}, {'id': 2}]
        android = {'data': [{'package_name': 'com.a'}]}
        first = self._make(ios, android).populate()
        second = self._make(ios, android).populate()
        self.assertEqual(first.created, 3)
        self.assertEqual(second.created, 0)
        self.assertEqual(second.skipped, 3)
        self.assertEqual(self.repo.count(), 3)

    def test_duplicates_within_one_feed_created_once(self):
        summary = self._make([{'id': 1, 'name': 'A'}, {'id': 1, 'name': 'B'}], []).populate()
        self.assertEqual(summary.created, 1)
        self.assertEqual(summary.skipped, 1)
        self.assertEqual(self.repo.find_all()[0].name, 'A')

    def test_same_store_id_on_both_platforms(self):
        summary = self._make([{'id': 'shared'}], [{'id': 'shared'}]).populate()
        self.assertEqual(summary.created, 2)
        pairs = sorted((g.store_id, g.platform) for g in self.repo.find_all())
        self.assertEqual(pairs, [('shared', 'android'), ('shared', 'ios')])

    def test_existing_game_not_updated(self):
        self.repo.create({'storeId': '1', 'platform': 'ios', 'name': 'Manual'})
        summary = self._make([{'id': 1, 'name': 'From feed'}], []).populate()
        self.assertEqual(summary.created, 0)
        self.assertEqual(self.repo.find_all()[0].name, 'Manual')

    def test_feed_failure_writes_nothing(self):
        client = MagicMock()
        client.fetch_all.side_effect = FeedImportError('ios', 'http://x', IOError('boom'))
        with self.assertRaises(FeedImportError):
            ImportService(client, self.repo).populate()
        self.assertEqual(self.repo.count(), 0)

    def test_store_failure_keeps_earlier_inserts(self):
        repo = MagicMock(wraps=self.repo)
        calls = []

        def _find_or_create(where, defaults=None):
            calls.append(where)
            if len(calls) == 2:
                raise StoreError('Could not create game')
            return self.repo.find_or_create(where, defaults=defaults)

        repo.find_or_create.side_effect = _find_or_create
        service = ImportService(_fake_feeds([{'id': 1}, {'id': 2}], []), repo)
        with self.assertRaises(StoreError):
            service.populate()
        self.assertEqual(self.repo.count(), 1)

    def test_unusable_bodies_process_nothing(self):
        summary = self._make(None, 'not json').populate()
        self.assertEqual(summary.total_processed, 0)
        self.assertEqual(summary.created, 0)


if __name__ == '__main__':
    unittest.main()
