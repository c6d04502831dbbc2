# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import asyncio
import contextlib
import functools
import inspect
import json
import os
import unittest
import unittest.mock as mock
import uuid as _uuid
from collections import deque

from multidict import CIMultiDict

import aiosofa.server
from aiosofa.client import extract_credentials, urljoin


URL = os.environ.get('AIOSOFA_URL', 'http://localhost:5984')


def run_in_loop(f):
    @functools.wraps(f)
    def wrapper(testcase, *args, **kwargs):
        future = asyncio.wait_for(f(testcase, *args, **kwargs),
                                  timeout=testcase.timeout)
        return testcase.loop.run_until_complete(future)
    return wrapper


class MetaAioTestCase(type):

    def __new__(cls, name, bases, attrs):
        for key, obj in attrs.items():
            if key.startswith('test_') and inspect.iscoroutinefunction(obj):
                attrs[key] = run_in_loop(obj)
        return super().__new__(cls, name, bases, attrs)


async def hang():
    await asyncio.sleep(3600)


class TestCase(unittest.TestCase, metaclass=MetaAioTestCase):

    timeout = 5
    url = extract_credentials(URL)[0].rstrip('/')

    def setUp(self):
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)

        self._patch = mock.patch('aiohttp.ClientSession.request',
                                 new_callable=mock.AsyncMock)
        self.request = self._patch.start()
        self._set_response(self.prepare_response())

        self.loop.run_until_complete(self.setup_env())

    def tearDown(self):
        self.loop.run_until_complete(self.teardown_env())
        self._patch.stop()
        self.loop.close()
        asyncio.set_event_loop(None)

    async def setup_env(self):
        pass

    async def teardown_env(self):
        pass

    def prepare_response(self, *,
                         data=b'',
                         err=None,
                         headers=None,
                         status=200):
        """Builds fake :class:`aiohttp.ClientResponse`. ``data`` may be
        a list of chunks; a callable chunk is awaited instead of returned,
        e.g. :func:`hang` to simulate a stalled connection."""
        chunks = deque(data if isinstance(data, list) else [data])

        async def readany():
            if chunks:
                chunk = chunks.popleft()
                if callable(chunk):
                    return await chunk()
                return chunk
            if err is not None:
                raise err
            return b''

        headers = CIMultiDict(headers or {})
        headers.setdefault('Content-Type', 'application/json')

        raw = mock.Mock()
        raw.status = status
        raw.headers = headers
        raw.content.readany = readany
        raw.release = mock.Mock()
        raw.close = mock.Mock()
        return raw

    @contextlib.contextmanager
    def response(self, *,
                 data=b'',
                 err=None,
                 headers=None,
                 status=200):
        resp = self.prepare_response(data=data,
                                     err=err,
                                     headers=headers,
                                     status=status)
        self._set_response(resp)
        yield resp
        self._set_response(self.prepare_response())

    @contextlib.contextmanager
    def responses(self, *resps):
        """Replies with the given raw responses in order."""
        self.request.side_effect = list(resps)
        yield resps
        self.request.side_effect = None

    def _set_response(self, resp):
        self.request.side_effect = None
        self.request.return_value = resp

    def json_response(self, obj, status=200, headers=None):
        return self.prepare_response(data=json.dumps(obj).encode(),
                                     status=status,
                                     headers=headers)

    def assert_request_called_with(self, method, *path, **kwargs):
        self.assertTrue(self.request.called and self.request.call_count >= 1)

        call_args, call_kwargs = self.request.call_args
        self.assertEqual((method, urljoin(self.url, *path)), call_args)

        kwargs.setdefault('data', None)
        kwargs.setdefault('params', {})
        for key, value in kwargs.items():
            self.assertIn(key, call_kwargs)
            if value is not Ellipsis:
                self.assertEqual(value, call_kwargs[key])

    def assert_request_json(self, expected):
        _, call_kwargs = self.request.call_args
        self.assertEqual(expected, json.loads(call_kwargs['data']))


class ServerTestCase(TestCase):

    server_class = aiosofa.server.Server

    async def setup_env(self):
        await super().setup_env()
        self.server = self.server_class(URL)

    async def teardown_env(self):
        await self.server.close()
        await super().teardown_env()


class DatabaseTestCase(ServerTestCase):

    def new_dbname(self):
        return dbname(self.id().split('.')[-1])

    async def setup_env(self):
        await super().setup_env()
        self.dbname = self.new_dbname()
        self.url_db = urljoin(self.url, self.dbname)
        self.db = self.server[self.dbname]


class DocumentTestCase(DatabaseTestCase):

    async def setup_env(self):
        await super().setup_env()
        self.docid = uuid()
        self.url_doc = urljoin(self.url_db, self.docid)
        self.doc = self.db[self.docid]
        self.rev = '1-ABC'


def uuid():
    return _uuid.uuid4().hex


def dbname(idx=None, prefix='test-aiosofa'):
    if idx:
        return '-'.join((prefix, idx.replace('_', '-'), uuid()))
    return '-'.join((prefix, uuid()))
