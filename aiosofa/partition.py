# -*- coding: utf-8 -*-
#
# Copyright (C) 2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

from .document import Document
from .errors import returns_result
from .mango import Mango
from .records import Doc, to_wire
from .views import View

__all__ = (
    'Partition',
    'build_id',
    'parse_id',
)


#: Separates partition name from document ID
SEPARATOR = ':'


def build_id(partition, docid):
    """Builds partitioned document ID.

    >>> build_id('org1', 'user-123')
    'org1:user-123'

    :raises: :exc:`ValueError` if partition name contains the separator
    """
    if not partition:
        raise ValueError('partition name is empty')
    if SEPARATOR in partition:
        raise ValueError('partition name cannot contain {!r}: {!r}'
                         ''.format(SEPARATOR, partition))
    return '{}{}{}'.format(partition, SEPARATOR, docid)


def parse_id(partitioned_id):
    """Splits partitioned document ID into partition name and document ID.
    Returns ``None`` if there is no separator.

    >>> parse_id('org1:user-123')
    ('org1', 'user-123')
    >>> parse_id('no-colon-here') is None
    True
    """
    if not isinstance(partitioned_id, str) or SEPARATOR not in partitioned_id:
        return None
    partition, _, docid = partitioned_id.partition(SEPARATOR)
    return partition, docid


class Partition(object):
    """Scoped access to a single partition of a partitioned database. Should
    be obtained via :meth:`aiosofa.database.Database.partition`."""

    document_class = Document
    view_class = View

    def __init__(self, resource, name, *, database=None, doc_class=Doc):
        build_id(name, '')
        self.db_resource = resource
        self.resource = resource('_partition', name)
        self.name = name
        self.database = database
        self.doc_class = doc_class
        self._mango = Mango(self.resource, database=database,
                            doc_class=doc_class)

    def __getitem__(self, docid):
        return self.doc(docid)

    def doc(self, docid):
        """Returns :class:`~aiosofa.document.Document` for the partitioned
        document ID built from ``docid``."""
        docid = build_id(self.name, docid)
        return self.document_class(self.db_resource(docid),
                                   docid=docid,
                                   database=self.database,
                                   doc_class=self.doc_class)

    def get(self, docid, *, auth=None, **options):
        """Returns the document from the partition.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        return self.doc(docid).get(auth=auth, **options)

    def put(self, docid, doc, *, auth=None, rev=None):
        """Creates or updates the document in the partition.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        document = self.doc(docid)
        data = to_wire(doc)
        data['_id'] = document.id
        return document.update(data, auth=auth, rev=rev)

    def delete(self, docid, rev, *, auth=None):
        """Deletes the document from the partition.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        return self.doc(docid).remove(rev, auth=auth)

    @returns_result
    async def info(self, *, auth=None):
        """Returns partition information: documents count and size.

        :rtype: dict
        """
        resp = await self.resource.get(auth=auth)
        await resp.maybe_raise_error(database=self.database)
        return await resp.json(expect=dict)

    @returns_result
    async def all_docs(self, *keys, auth=None, **options):
        """Queries ``_all_docs`` of the partition.

        :rtype: :class:`~aiosofa.views.ViewResult`
        """
        if keys:
            options['keys'] = keys
        view = self.view_class(self.resource('_all_docs'),
                               database=self.database,
                               doc_class=self.doc_class)
        return await view.request(auth=auth, params=options)

    @returns_result
    async def view(self, ddoc, view_name, *keys, auth=None, **options):
        """Queries a view of the design document limited to the partition.

        :param str ddoc: Design document name without ``_design/`` prefix
        :param str view_name: View name

        :rtype: :class:`~aiosofa.views.ViewResult`
        """
        if ddoc.startswith('_design/'):
            ddoc = ddoc[len('_design/'):]
        if keys:
            options['keys'] = keys
        view = self.view_class(self.resource('_design', ddoc, '_view',
                                             view_name),
                               database=self.database,
                               doc_class=self.doc_class)
        return await view.request(auth=auth, params=options)

    def find(self, selector, *, auth=None, **options):
        """Runs Mango query against the partition.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        return self._mango.query(selector, auth=auth, **options)

    def explain(self, selector, *, auth=None, **options):
        """Explains Mango query against the partition.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        query = dict(options)
        query['selector'] = selector
        return self._mango.explain(query, auth=auth)
