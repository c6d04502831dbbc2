# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import aiosofa.errors
from aiosofa.records import Doc
from aiosofa.replication import replication_doc

from . import utils


class ReplicationDocTestCase(utils.TestCase):

    def test_drops_none_options(self):
        self.assertEqual({'source': 'a', 'target': 'b', 'continuous': True},
                         replication_doc('a', 'b', {'continuous': True,
                                                    'filter': None}))

    def test_unknown_option(self):
        with self.assertRaises(TypeError):
            replication_doc('a', 'b', {'continous': True})


class ReplicationTestCase(utils.ServerTestCase):

    async def setup_env(self):
        await super().setup_env()
        self.repl = self.server.replication

    async def test_replicate(self):
        with self.response(data=b'{"ok": true, "session_id": "abc"}'):
            result = await self.repl.replicate('source', 'http://remote/db',
                                               create_target=True,
                                               doc_ids=['a', 'b'])
            self.assert_request_called_with('POST', '_replicate', data=...)
            self.assert_request_json({'source': 'source',
                                      'target': 'http://remote/db',
                                      'create_target': True,
                                      'doc_ids': ['a', 'b']})
        self.assertEqual('abc', result.value['session_id'])

    async def test_replicate_unknown_option(self):
        with self.assertRaises(TypeError):
            await self.repl.replicate('a', 'b', continous=True)
        self.assertFalse(self.request.called)

    async def test_replicate_missing_source(self):
        with self.response(status=404, data=b'{"error": "not_found", '
                                            b'"reason": "Database missing"}'):
            result = await self.repl.replicate('missing', 'target')
        self.assertIsInstance(result.error, aiosofa.errors.NotFound)

    async def test_cancel(self):
        with self.response(data=b'{"ok": true}'):
            await self.repl.cancel('abc+continuous')
            self.assert_request_called_with('POST', '_replicate', data=...)
            self.assert_request_json({'replication_id': 'abc+continuous',
                                      'cancel': True})

    async def test_create_doc(self):
        with self.response(data=b'{"ok": true, "id": "rep1", "rev": "1-a"}'):
            await self.repl.create_doc('rep1', 'a', 'b', continuous=True)
            self.assert_request_called_with('PUT', '_replicator', 'rep1',
                                            data=...)
            self.assert_request_json({'source': 'a', 'target': 'b',
                                      'continuous': True})

    async def test_get_doc(self):
        with self.response(data=b'{"_id": "rep1", "_rev": "2-b", '
                                b'"source": "a", "target": "b", '
                                b'"_replication_state": "completed"}'):
            result = await self.repl.status('rep1')
            self.assert_request_called_with('GET', '_replicator', 'rep1')
        self.assertEqual('completed',
                         result.value.body['_replication_state'])

    async def test_get_missing_doc(self):
        with self.response(status=404, data=b'{"error": "not_found"}'):
            result = await self.repl.get_doc('rep1')
        self.assertIsInstance(result.error, aiosofa.errors.NotFound)
        self.assertEqual('rep1', result.error.doc_id)
        self.assertEqual('_replicator', result.error.database)

    async def test_delete_doc(self):
        with self.response(data=b'{"ok": true}'):
            await self.repl.delete_doc('rep1', '2-b')
            self.assert_request_called_with('DELETE', '_replicator', 'rep1',
                                            params={'rev': '2-b'})

    async def test_list(self):
        with self.response(data=b'{"total_rows": 2, "offset": 0, "rows": ['
                                b'{"id": "_design/x", "key": "_design/x", '
                                b'"value": {}, "doc": {"_id": "_design/x"}},'
                                b'{"id": "rep1", "key": "rep1", "value": {},'
                                b' "doc": {"_id": "rep1", "source": "a"}}]}'):
            result = await self.repl.list()
            self.assert_request_called_with('GET', '_replicator', '_all_docs',
                                            params={'include_docs': 'true'})
        self.assertEqual([Doc('rep1', body={'source': 'a'})], result.value)

    async def test_jobs(self):
        with self.response(data=b'{"total_rows": 0, "jobs": []}'):
            await self.repl.jobs(limit=10)
            self.assert_request_called_with('GET', '_scheduler', 'jobs',
                                            params={'limit': '10'})

    async def test_docs(self):
        with self.response(data=b'{"total_rows": 0, "docs": []}'):
            await self.repl.docs('_replicator', states=['running', 'failed'])
            self.assert_request_called_with(
                'GET', '_scheduler', 'docs', '_replicator',
                params={'states': 'running,failed'})

    async def test_all_docs_states(self):
        with self.response(data=b'{"total_rows": 0, "docs": []}'):
            await self.repl.docs()
            self.assert_request_called_with('GET', '_scheduler', 'docs')

    async def test_doc_info(self):
        with self.response(data=b'{"doc_id": "rep1", "state": "running"}'):
            result = await self.repl.doc_info('_replicator', 'rep1')
            self.assert_request_called_with('GET', '_scheduler', 'docs',
                                            '_replicator', 'rep1')
        self.assertEqual('running', result.value['state'])
