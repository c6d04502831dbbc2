# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

"""Translation of ``_bulk_docs`` and ``_bulk_get`` requests and responses.

Per-item failures never fail the whole batch: each item result is either
:class:`BulkOk` or :class:`BulkError`, in submission order.
"""

import logging
from collections import namedtuple
from collections.abc import Mapping

from .errors import Unknown
from .records import Doc, to_wire

__all__ = (
    'BulkError',
    'BulkGetItem',
    'BulkOk',
    'build_bulk_docs_body',
    'build_bulk_get_body',
    'parse_bulk_docs',
    'parse_bulk_get',
)

log = logging.getLogger(__name__)


class BulkOk(namedtuple('BulkOk', ['id', 'rev'])):
    """Successfully written item."""

    __slots__ = ()

    ok = True


class BulkError(namedtuple('BulkError', ['id', 'error', 'rev', 'reason'])):
    """Item rejected by the server, e.g. with ``conflict`` or ``forbidden``
    error code."""

    __slots__ = ()

    ok = False

    def __new__(cls, id, error, rev=None, reason=None):
        return super().__new__(cls, id, error, rev, reason)


class BulkGetItem(namedtuple('BulkGetItem', ['id', 'doc', 'error', 'reason',
                                             'docs'])):
    """Result of fetching a single document ID with ``_bulk_get``: either
    a resolved :attr:`doc` or an :attr:`error` marker (``not_found`` for
    missing documents). :attr:`docs` keeps every returned revision when
    more than one was requested."""

    __slots__ = ()

    def __new__(cls, id, doc=None, error=None, reason=None, docs=()):
        return super().__new__(cls, id, doc, error, reason, tuple(docs))

    @property
    def ok(self):
        return self.error is None

    @property
    def not_found(self):
        return self.error == 'not_found'


def build_bulk_docs_body(docs, *, new_edits=None, all_or_nothing=None):
    """Builds ``_bulk_docs`` request payload keeping documents order.

    :param list docs: :class:`~aiosofa.records.Doc` instances or mappings
    :param bool new_edits: If ``False``, the server keeps supplied revisions
    :param bool all_or_nothing: Use all-or-nothing commit semantics

    :rtype: dict
    """
    body = {'docs': [to_wire(doc) for doc in docs]}
    if isinstance(new_edits, bool):
        body['new_edits'] = new_edits
    if isinstance(all_or_nothing, bool):
        body['all_or_nothing'] = all_or_nothing
    return body


def parse_bulk_item(item):
    """Maps single ``_bulk_docs`` response item.

    :raises: :exc:`~aiosofa.errors.Unknown` if item has unexpected shape
    """
    if not isinstance(item, Mapping):
        raise Unknown('', 'unexpected bulk result item', body=item)
    if 'error' in item:
        return BulkError(item.get('id'), item['error'],
                         item.get('rev'), item.get('reason'))
    if item.get('ok') is True and 'id' in item and 'rev' in item:
        return BulkOk(item['id'], item['rev'])
    # new_edits=false responses carry no "ok" for stored documents
    if 'id' in item and 'rev' in item and 'ok' not in item:
        return BulkOk(item['id'], item['rev'])
    raise Unknown('', 'unexpected bulk result item', body=item)


def parse_bulk_docs(data, expected, *, database=None):
    """Maps ``_bulk_docs`` response array to per-item results.

    :param list data: Decoded response payload
    :param int expected: Number of submitted documents
    :param str database: Database name for error context

    :raises: :exc:`~aiosofa.errors.Unknown` if response isn't an array of
             ``expected`` items

    :rtype: list
    """
    if not isinstance(data, list) or len(data) != expected:
        log.warning('bulk response shape mismatch: expected %d items, got %r',
                    expected, type(data).__name__ if not isinstance(data, list)
                    else len(data))
        raise Unknown('', 'bulk response does not match request',
                      body=data, database=database)
    results = []
    for item in data:
        try:
            results.append(parse_bulk_item(item))
        except Unknown as exc:
            exc.database = database
            raise
    return results


def build_bulk_get_body(ids):
    """Builds ``_bulk_get`` request payload.

    :param list ids: Document IDs or ``(id, rev)`` pairs or mappings
                     with ``id`` and ``rev`` keys

    :rtype: dict
    """
    docs = []
    for item in ids:
        if isinstance(item, str):
            docs.append({'id': item})
        elif isinstance(item, Mapping):
            entry = {'id': item['id']}
            if item.get('rev'):
                entry['rev'] = item['rev']
            docs.append(entry)
        else:
            docid, rev = item
            entry = {'id': docid}
            if rev:
                entry['rev'] = rev
            docs.append(entry)
    return {'docs': docs}


def parse_bulk_get(data, *, doc_class=Doc, database=None):
    """Maps ``_bulk_get`` response into :class:`BulkGetItem` list. Documents
    are decoded with ``doc_class``.

    :raises: :exc:`~aiosofa.errors.Unknown` on unexpected response shape

    :rtype: list
    """
    if not isinstance(data, Mapping) or not isinstance(data.get('results'),
                                                       list):
        raise Unknown('', 'unexpected bulk get response', body=data,
                      database=database)
    items = []
    for result in data['results']:
        if not isinstance(result, Mapping) \
                or not isinstance(result.get('docs') or [], list):
            raise Unknown('', 'unexpected bulk get result item', body=result,
                          database=database)
        docid = result.get('id')
        docs = result.get('docs') or []
        found, failed = [], None
        for entry in docs:
            if not isinstance(entry, Mapping):
                raise Unknown('', 'unexpected bulk get document entry',
                              body=entry, database=database)
            if isinstance(entry.get('ok'), Mapping):
                found.append(doc_class.from_wire(entry['ok']))
            elif failed is None and isinstance(entry.get('error'), Mapping):
                failed = entry['error']
        if found:
            items.append(BulkGetItem(docid, found[0], docs=found))
        elif failed is not None:
            items.append(BulkGetItem(docid,
                                     error=failed.get('error', 'not_found'),
                                     reason=failed.get('reason')))
        else:
            items.append(BulkGetItem(docid, error='not_found'))
    return items
