# -*- coding: utf-8 -*-
#
# Copyright (C) 2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import enum

import aiosofa.errors
from aiosofa.mango import FindResult, stringify_keys
from aiosofa.records import Doc

from . import utils


class Field(enum.Enum):

    TYPE = 'type'


class StringifyKeysTestCase(utils.TestCase):

    def test_nested(self):
        self.assertEqual({'type': 'user', 'age': {'$gt': 21}},
                         stringify_keys({Field.TYPE: 'user',
                                         b'age': {'$gt': 21}}))

    def test_lists(self):
        self.assertEqual({'$or': [{'a': 1}, {'1': 2}]},
                         stringify_keys({'$or': ({b'a': 1}, {1: 2})}))

    def test_enum_values(self):
        self.assertEqual({'fields': ['type']},
                         stringify_keys({'fields': [Field.TYPE]}))


class MangoTestCase(utils.DatabaseTestCase):

    async def test_find(self):
        with self.response(data=b'{"docs": [{"_id": "a", "_rev": "1-a", '
                                b'"type": "user"}], "bookmark": "g1", '
                                b'"warning": "no matching index found"}'):
            result = await self.db.mango.find({'selector': {'type': 'user'},
                                               'limit': 10})
            self.assert_request_called_with('POST', self.dbname, '_find',
                                            data=...)
            self.assert_request_json({'selector': {'type': 'user'},
                                      'limit': 10})
        found = result.unwrap()
        self.assertIsInstance(found, FindResult)
        self.assertEqual([Doc('a', '1-a', type='user')], found.docs)
        self.assertEqual('g1', found.bookmark)
        self.assertEqual('no matching index found', found.warning)

    async def test_find_requires_selector(self):
        with self.assertRaises(ValueError):
            await self.db.mango.find({'limit': 10})

    async def test_query(self):
        with self.response(data=b'{"docs": []}'):
            await self.db.mango.query({Field.TYPE: 'user'},
                                      sort=[{'name': 'asc'}], bookmark='g1')
            self.assert_request_json({'selector': {'type': 'user'},
                                      'sort': [{'name': 'asc'}],
                                      'bookmark': 'g1'})

    async def test_find_bad_request(self):
        with self.response(status=400, data=b'{"error": "invalid_selector"}'):
            result = await self.db.mango.find({'selector': {'$bad': 1}})
        self.assertIsInstance(result.error, aiosofa.errors.BadRequest)
        self.assertEqual({'error': 'invalid_selector'}, result.error.details)

    async def test_find_unexpected_docs(self):
        with self.response(data=b'{"docs": ["a"]}'):
            result = await self.db.mango.find({'selector': {}})
        self.assertIsInstance(result.error, aiosofa.errors.Unknown)
        self.assertEqual(self.dbname, result.error.database)

    async def test_explain(self):
        with self.response(data=b'{"index": {"name": "_all_docs"}}'):
            result = await self.db.mango.explain({'selector': {}})
            self.assert_request_called_with('POST', self.dbname, '_explain',
                                            data=...)
        self.assertEqual('_all_docs', result.value['index']['name'])

    async def test_create_index(self):
        with self.response(data=b'{"result": "created", "id": "_design/x",'
                                b' "name": "by-type"}'):
            result = await self.db.mango.create_index({'fields': ['type']},
                                                      name='by-type',
                                                      ddoc='x')
            self.assert_request_called_with('POST', self.dbname, '_index',
                                            data=...)
            self.assert_request_json({'index': {'fields': ['type']},
                                      'name': 'by-type',
                                      'ddoc': 'x'})
        self.assertEqual('created', result.value['result'])

    async def test_list_indexes(self):
        with self.response(data=b'{"total_rows": 0, "indexes": []}'):
            await self.db.mango.list_indexes()
            self.assert_request_called_with('GET', self.dbname, '_index')

    async def test_delete_index(self):
        with self.response(data=b'{"ok": true}'):
            await self.db.mango.delete_index('by-type', '_design/x')
            self.assert_request_called_with('DELETE', self.dbname, '_index',
                                            'x', 'json', 'by-type')

    async def test_delete_index_by_name(self):
        indexes = self.json_response({'indexes': [
            {'ddoc': None, 'name': '_all_docs'},
            {'ddoc': '_design/x', 'name': 'by-type'}]})
        with self.responses(indexes, self.json_response({'ok': True})):
            result = await self.db.mango.delete_index('by-type')
            self.assert_request_called_with('DELETE', self.dbname, '_index',
                                            'x', 'json', 'by-type')
        self.assertTrue(result.value['ok'])

    async def test_delete_missing_index(self):
        with self.response(data=b'{"indexes": []}'):
            result = await self.db.mango.delete_index('by-type')
        self.assertIsInstance(result.error, aiosofa.errors.IndexNotFound)
        self.assertEqual('by-type', result.error.name)
        self.assertEqual(self.dbname, result.error.database)

    async def test_delete_index_of_missing_database(self):
        with self.response(status=404, data=b'{"error": "not_found"}'):
            result = await self.db.mango.delete_index('by-type')
        self.assertIsInstance(result.error, aiosofa.errors.IndexNotFound)
