# -*- coding: utf-8 -*-
#
# Copyright (C) 2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

from aiosofa.partition import build_id, parse_id
from aiosofa.records import Doc

from . import utils


class PartitionIdTestCase(utils.TestCase):

    def test_build_id(self):
        self.assertEqual('org1:user-123', build_id('org1', 'user-123'))

    def test_build_id_rejects_separator(self):
        with self.assertRaises(ValueError):
            build_id('org:1', 'user-123')

    def test_build_id_rejects_empty_partition(self):
        with self.assertRaises(ValueError):
            build_id('', 'user-123')

    def test_parse_id(self):
        self.assertEqual(('org1', 'user-123'), parse_id('org1:user-123'))

    def test_parse_id_keeps_docid_separators(self):
        self.assertEqual(('org1', 'a:b'), parse_id('org1:a:b'))

    def test_parse_id_failure(self):
        self.assertIsNone(parse_id('no-colon-here'))
        self.assertIsNone(parse_id(None))


class PartitionTestCase(utils.DatabaseTestCase):

    async def setup_env(self):
        await super().setup_env()
        self.part = self.db.partition('org1')

    def test_doc(self):
        doc = self.part.doc('user-123')
        self.assertEqual('org1:user-123', doc.id)
        self.assertEqual(utils.urljoin(self.url_db, 'org1:user-123'),
                         doc.resource.url)

    async def test_info(self):
        with self.response(data=b'{"partition": "org1", "doc_count": 2}'):
            result = await self.part.info()
            self.assert_request_called_with('GET', self.dbname, '_partition',
                                            'org1')
        self.assertEqual(2, result.value['doc_count'])

    async def test_get(self):
        with self.response(data=b'{"_id": "org1:a", "_rev": "1-a"}'):
            result = await self.part.get('a')
            self.assert_request_called_with('GET', self.dbname, 'org1:a')
        self.assertEqual(Doc('org1:a', '1-a'), result.value)

    async def test_put(self):
        with self.response(data=b'{"ok": true, "id": "org1:a", "rev": "1-a"}'):
            await self.part.put('a', Doc(body={'n': 1}))
            self.assert_request_called_with('PUT', self.dbname, 'org1:a',
                                            data=...)
            self.assert_request_json({'_id': 'org1:a', 'n': 1})

    async def test_delete(self):
        with self.response(data=b'{"ok": true}'):
            await self.part.delete('a', '1-a')
            self.assert_request_called_with('DELETE', self.dbname, 'org1:a',
                                            params={'rev': '1-a'})

    async def test_all_docs(self):
        with self.response(data=b'{"rows": []}'):
            await self.part.all_docs(limit=5)
            self.assert_request_called_with('GET', self.dbname, '_partition',
                                            'org1', '_all_docs',
                                            params={'limit': '5'})

    async def test_view(self):
        with self.response(data=b'{"rows": []}'):
            await self.part.view('_design/app', 'by_type', 'user')
            self.assert_request_called_with('GET', self.dbname, '_partition',
                                            'org1', '_design', 'app', '_view',
                                            'by_type',
                                            params={'key': '"user"'})

    async def test_find(self):
        with self.response(data=b'{"docs": []}'):
            await self.part.find({'type': 'user'}, limit=1)
            self.assert_request_called_with('POST', self.dbname, '_partition',
                                            'org1', '_find', data=...)
            self.assert_request_json({'selector': {'type': 'user'},
                                      'limit': 1})

    async def test_explain(self):
        with self.response(data=b'{"index": {}}'):
            await self.part.explain({'type': 'user'})
            self.assert_request_called_with('POST', self.dbname, '_partition',
                                            'org1', '_explain', data=...)
