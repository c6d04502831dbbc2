# -*- coding: utf-8 -*-
#
# Copyright (C) 2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

"""Mango declarative queries and indexes management. Queries are passed to
the server as is, the only translation made is keys stringification::

    result = await db.mango.query({'type': 'user', 'age': {'$gt': 21}},
                                  sort=[{'name': 'asc'}], limit=10)
    for doc in result.unwrap().docs:
        ...
"""

import enum
import logging
from collections import namedtuple
from collections.abc import Mapping

from .errors import IndexNotFound, NotFound, Unknown, returns_result
from .records import Doc
from .telemetry import operation_context

__all__ = (
    'FindResult',
    'Mango',
    'stringify_keys',
)

log = logging.getLogger(__name__)


#: Result of ``_find`` request
FindResult = namedtuple('FindResult', ['docs', 'bookmark', 'warning',
                                       'execution_stats'])


def _stringify(key):
    if isinstance(key, enum.Enum):
        key = key.value
    if isinstance(key, bytes):
        return key.decode('utf-8')
    return key if isinstance(key, str) else str(key)


def stringify_keys(value):
    """Recursively converts mapping keys into strings.

    >>> stringify_keys({b'name': ('a', 'b')})
    {'name': ['a', 'b']}
    """
    if isinstance(value, Mapping):
        return {_stringify(key): stringify_keys(item)
                for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [stringify_keys(item) for item in value]
    if isinstance(value, enum.Enum):
        return value.value
    return value


class Mango(object):
    """Implementation of :ref:`CouchDB Mango API <api/db/find>`."""

    def __init__(self, resource, *, database=None, doc_class=Doc):
        self.resource = resource
        self.database = database
        self.doc_class = doc_class

    @returns_result
    async def find(self, query, *, auth=None):
        """Finds documents using declarative JSON querying syntax.

        :param dict query: Query object with ``selector`` and optional
                           ``fields``, ``sort``, ``limit``, ``skip``,
                           ``bookmark``, ``use_index`` etc. fields
        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: :class:`FindResult`
        """
        query = stringify_keys(query)
        if 'selector' not in query:
            raise ValueError('selector is required')
        log.debug('find in %s by %s', self.database,
                  sorted(query['selector']))
        resp = await self.resource.post(
            '_find', auth=auth, data=query,
            trace=operation_context('mango_find', database=self.database))
        await resp.maybe_raise_error(database=self.database)
        body = await resp.json()
        docs = (body.get('docs') or []) if isinstance(body, Mapping) else None
        if not isinstance(docs, list) \
                or not all(isinstance(doc, Mapping) for doc in docs):
            raise Unknown('', 'unexpected find response', body=body,
                          database=self.database)
        return FindResult([self.doc_class.from_wire(doc) for doc in docs],
                          body.get('bookmark'),
                          body.get('warning'),
                          body.get('execution_stats'))

    def query(self, selector, *, auth=None, **options):
        """Same as :meth:`find`, but takes the selector and the rest of query
        fields separately.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        query = dict(options)
        query['selector'] = selector
        return self.find(query, auth=auth)

    @returns_result
    async def explain(self, query, *, auth=None):
        """Returns the query plan: chosen index, options and limits.

        :rtype: dict
        """
        resp = await self.resource.post('_explain', auth=auth,
                                        data=stringify_keys(query))
        await resp.maybe_raise_error(database=self.database)
        return await resp.json(expect=dict)

    @returns_result
    async def create_index(self, index, *, auth=None, ddoc=None, name=None,
                           type=None, partitioned=None):
        """Creates an index.

        :param index: Index definition, e.g. ``{'fields': ['type']}``, or
                      the complete request object with ``index`` field
        :param str ddoc: Design document to store the index in
        :param str name: Index name
        :param str type: Index type: ``json`` or ``text``
        :param bool partitioned: Creates partitioned or global index

        :rtype: dict
        """
        index = stringify_keys(index)
        data = index if 'index' in index else {'index': index}
        for key, value in (('ddoc', ddoc), ('name', name), ('type', type),
                           ('partitioned', partitioned)):
            if value is not None:
                data[key] = value
        resp = await self.resource.post('_index', auth=auth, data=data)
        await resp.maybe_raise_error(database=self.database)
        return await resp.json(expect=dict)

    @returns_result
    async def list_indexes(self, *, auth=None):
        """Lists database indexes.

        :rtype: dict
        """
        resp = await self.resource.get('_index', auth=auth)
        await resp.maybe_raise_error(database=self.database)
        return await resp.json(expect=dict)

    @returns_result
    async def delete_index(self, name, ddoc=None, *, auth=None):
        """Deletes an index. If design document is unknown, looks it up in
        the indexes list first.

        :param str name: Index name
        :param str ddoc: Design document name, with or without ``_design/``
                         prefix

        Missing index is reported with :exc:`~aiosofa.errors.IndexNotFound`
        error.

        :rtype: dict
        """
        if ddoc is None:
            ddoc = await self._find_ddoc(name, auth)
        if ddoc.startswith('_design/'):
            ddoc = ddoc[len('_design/'):]
        resp = await self.resource('_index', ddoc, 'json', name).delete(
            auth=auth)
        await resp.maybe_raise_error(database=self.database)
        return await resp.json(expect=dict)

    async def _find_ddoc(self, name, auth):
        try:
            indexes = (await self.list_indexes(auth=auth)).unwrap()
        except NotFound as exc:
            raise IndexNotFound(name, database=self.database) from exc
        for index in (indexes or {}).get('indexes', []):
            if index.get('name') == name and index.get('ddoc'):
                return index['ddoc']
        raise IndexNotFound(name, database=self.database)
