# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import logging
import urllib.parse
import uuid

from .bulk import (
    build_bulk_docs_body,
    build_bulk_get_body,
    parse_bulk_docs,
    parse_bulk_get,
)
from .client import Resource
from .designdoc import DesignDocument
from .document import Document
from .errors import returns_result
from .feeds import (
    ChangesFeed,
    ContinuousChangesFeed,
    EventSourceChangesFeed,
)
from .mango import Mango
from .params import FeedMode, encode_changes_params
from .partition import Partition
from .records import Doc, to_wire
from .security import Security
from .telemetry import operation_context
from .views import View

__all__ = (
    'Database',
)

log = logging.getLogger(__name__)


class Database(object):
    """Implementation of :ref:`CouchDB Database API <api/db>`.

    Every remote method returns :class:`~aiosofa.errors.Result`.
    """

    #: Default :class:`~aiosofa.document.Document` instance class
    document_class = Document
    #: Default :class:`~aiosofa.designdoc.DesignDocument` instance class
    design_document_class = DesignDocument
    #: :class:`Views requesting helper<aiosofa.views.View>`
    view_class = View
    #: Changes feed classes by feed type
    feed_classes = {
        FeedMode.NORMAL.value: ChangesFeed,
        FeedMode.LONGPOLL.value: ChangesFeed,
        FeedMode.CONTINUOUS.value: ContinuousChangesFeed,
        FeedMode.EVENTSOURCE.value: EventSourceChangesFeed,
    }

    def __init__(self, url_or_resource, *,
                 dbname=None,
                 doc_class=Doc,
                 document_class=None,
                 design_document_class=None,
                 view_class=None):
        if document_class is not None:
            self.document_class = document_class
        if design_document_class is not None:
            self.design_document_class = design_document_class
        if view_class is not None:
            self.view_class = view_class
        if isinstance(url_or_resource, str):
            url_or_resource = Resource(url_or_resource)
        self.resource = url_or_resource
        if dbname is None:
            dbname = urllib.parse.unquote(self.resource.url.rsplit('/', 1)[-1])
        self._dbname = dbname
        self.doc_class = doc_class
        self._security = Security(self.resource, database=dbname)
        self._mango = Mango(self.resource, database=dbname,
                            doc_class=doc_class)

    def __getitem__(self, docid):
        if docid.startswith('_design/'):
            resource = self.resource(*docid.split('/', 1))
            return self.design_document_class(resource,
                                              docid=docid,
                                              database=self.name,
                                              doc_class=self.doc_class)
        else:
            return self.document_class(self.resource(docid),
                                       docid=docid,
                                       database=self.name,
                                       doc_class=self.doc_class)

    @property
    def name(self):
        """Returns a database name."""
        return self._dbname

    @property
    def security(self):
        """Proxy to the related :class:`~aiosofa.security.Security`
        instance."""
        return self._security

    @property
    def mango(self):
        """Proxy to the related :class:`~aiosofa.mango.Mango` instance."""
        return self._mango

    def doc(self, docid=None, *, idfun=uuid.uuid4):
        """Returns :class:`~aiosofa.document.Document` instance against
        specified document ID.

        If document ID wasn't specified, the ``idfun`` function will be used
        to generate it.

        :param str docid: Document ID
        :param idfun: Document ID generation function.
                      Should return ``str`` or other object which could be
                      translated into string

        :rtype: :attr:`aiosofa.database.Database.document_class`
        """
        if docid is None:
            docid = str(idfun())
        return self[docid]

    def ddoc(self, docid):
        """Returns :class:`~aiosofa.designdoc.DesignDocument` instance
        against specified document ID. This ID may startswith with ``_design/``
        prefix and if it's not prefix will be added automatically.

        :rtype: :attr:`aiosofa.database.Database.design_document_class`
        """
        if not docid.startswith('_design/'):
            docid = '_design/' + docid
        return self[docid]

    def partition(self, name):
        """Returns :class:`~aiosofa.partition.Partition` helper.

        :raises: :exc:`ValueError` on invalid partition name
        """
        return Partition(self.resource, name,
                         database=self.name,
                         doc_class=self.doc_class)

    @returns_result
    async def exists(self, *, auth=None):
        """Checks if `database exists`_ on server.

        :rtype: bool

        .. _database exists: http://docs.couchdb.org/en/latest/api/database/common.html#head--db
        """
        resp = await self.resource.head(auth=auth)
        await resp.read()
        if resp.status == 404:
            return False
        await resp.maybe_raise_error(database=self.name)
        return True

    @returns_result
    async def info(self, *, auth=None):
        """Returns `database information`_.

        :rtype: dict

        .. _database information: http://docs.couchdb.org/en/latest/api/database/common.html#get--db
        """
        resp = await self.resource.get(auth=auth)
        await resp.maybe_raise_error(database=self.name)
        return await resp.json(expect=dict)

    @returns_result
    async def create(self, *, auth=None, partitioned=None, q=None, n=None):
        """`Creates a database`_.

        :param bool partitioned: Creates partitioned database
        :param int q: Number of shards
        :param int n: Number of replicas

        :rtype: bool

        .. _Creates a database: http://docs.couchdb.org/en/latest/api/database/common.html#put--db
        """
        params = {'partitioned': partitioned, 'q': q, 'n': n}
        resp = await self.resource.put(auth=auth, params=params)
        await resp.maybe_raise_error(database=self.name)
        status = await resp.json(expect=dict)
        if 'ok' not in status:
            raise resp.unexpected(status)
        return status['ok']

    @returns_result
    async def delete(self, *, auth=None):
        """`Deletes a database`_.

        :rtype: bool

        .. _Deletes a database: http://docs.couchdb.org/en/latest/api/database/common.html#delete--db
        """
        resp = await self.resource.delete(auth=auth)
        await resp.maybe_raise_error(database=self.name)
        status = await resp.json(expect=dict)
        if 'ok' not in status:
            raise resp.unexpected(status)
        return status['ok']

    @returns_result
    async def partitioned(self, *, auth=None):
        """Checks if database is partitioned.

        :rtype: bool
        """
        info = (await self.info(auth=auth)).unwrap()
        props = info.get('props') or {}
        return bool(props.get('partitioned', info.get('partitioned', False)))

    @returns_result
    async def all_docs(self, *keys, auth=None, **options):
        """Queries :ref:`all documents view <api/db/all_docs>`.

        :param str keys: List of document ids to fetch. This method is smart
                         enough to use `GET` or `POST` request depending on
                         amount of ``keys``
        :param auth: :class:`aiosofa.authn.AuthProvider` instance
        :param options: View query options, see
                        :func:`aiosofa.params.encode_view_params`

        :rtype: :class:`~aiosofa.views.ViewResult`
        """
        if keys:
            options['keys'] = keys
        view = self.view_class(self.resource('_all_docs'),
                               database=self.name,
                               doc_class=self.doc_class)
        return await view.request(auth=auth, params=options)

    @returns_result
    async def create_doc(self, doc, *, auth=None, batch=None):
        """Creates a new document with server assigned ID, unless the
        document carries its own.

        :param doc: :class:`~aiosofa.records.DocumentType` instance or mapping
        :param str batch: Stores document in batch mode. Accepts only ``"ok"``

        :rtype: dict
        """
        resp = await self.resource.post(auth=auth, data=to_wire(doc),
                                        params={'batch': batch})
        await resp.maybe_raise_error(database=self.name)
        return await resp.json(expect=dict)

    @returns_result
    async def bulk_docs(self, docs, *, auth=None, all_or_nothing=None,
                        new_edits=None):
        """:ref:`Updates multiple documents <api/db/bulk_docs>` using a single
        request. Each document succeeds or fails on its own.

        :param Iterable docs: Sequence of documents
        :param bool all_or_nothing: Sets the database commit mode to use
            :ref:`all-or-nothing <api/db/bulk_docs/semantics>` semantics
        :param bool new_edits: If `False`, prevents the database from
                               assigning them new revision for updated documents

        :returns: :class:`~aiosofa.bulk.BulkOk` or
                  :class:`~aiosofa.bulk.BulkError` per document in the same
                  order
        :rtype: list
        """
        docs = list(docs)
        data = build_bulk_docs_body(docs,
                                    new_edits=new_edits,
                                    all_or_nothing=all_or_nothing)
        resp = await self.resource.post('_bulk_docs', auth=auth, data=data)
        await resp.maybe_raise_error(database=self.name)
        return parse_bulk_docs(await resp.json(), len(docs),
                               database=self.name)

    @returns_result
    async def bulk_get(self, ids, *, auth=None, revs=None, latest=None):
        """Fetches multiple documents by IDs or ``(id, rev)`` pairs using
        a single request. Missing documents don't fail the request.

        :param bool revs: Includes revisions history
        :param bool latest: Returns the latest leaf revision

        :rtype: list of :class:`~aiosofa.bulk.BulkGetItem`
        """
        resp = await self.resource.post('_bulk_get',
                                        auth=auth,
                                        data=build_bulk_get_body(ids),
                                        params={'revs': revs,
                                                'latest': latest})
        await resp.maybe_raise_error(database=self.name)
        return parse_bulk_get(await resp.json(),
                              doc_class=self.doc_class,
                              database=self.name)

    @returns_result
    async def changes(self, *doc_ids,
                      auth=None,
                      headers=None,
                      idle_timeout=None,
                      **options):
        """Opens :ref:`database changes feed <api/db/changes>`.

        :param str doc_ids: Document IDs to filter for. Implicitly sets
                            ``filter`` param to ``_doc_ids`` value

        :param auth: :class:`aiosofa.authn.AuthProvider` instance
        :param dict headers: Custom request headers
        :param float idle_timeout: Fails the feed with
                                   :exc:`~aiosofa.errors.NetworkError` if no
                                   data, including heartbeats, arrived within
                                   the given number of seconds
        :param options: Feed options: ``feed``, ``since``, ``style``,
                        ``filter``, ``view``, ``heartbeat``, ``timeout``,
                        ``seq_interval``, ``include_docs`` etc.
                        See :data:`aiosofa.params.CHANGES_PARAMS`

        :rtype: :class:`~aiosofa.feeds.ChangesFeed`
        """
        if doc_ids:
            options['doc_ids'] = doc_ids
        params = encode_changes_params(options)
        feed_type = params.get('feed', FeedMode.NORMAL.value)

        # feeds have no overall deadline, idle_timeout watches them instead
        timeout = None if feed_type == FeedMode.NORMAL.value else 0

        trace = operation_context('changes', database=self.name)

        async def request():
            return await self.resource.get('_changes',
                                           auth=auth,
                                           headers=headers,
                                           params=params,
                                           timeout=timeout,
                                           trace=trace)

        log.debug('opening %s changes feed of %s since %s',
                  feed_type, self.name, params.get('since'))
        feed = self.feed_classes[feed_type](request,
                                            idle_timeout=idle_timeout,
                                            database=self.name,
                                            doc_class=self.doc_class)
        return await feed.connect()

    @returns_result
    async def since(self, token, *, auth=None, **options):
        """Fetches changes made after ``token`` with a single request. Pass
        the returned ``last_seq`` to the next call to poll without losing or
        duplicating changes.

        :param token: Sequence token from a previous response. ``0`` or
                      ``None`` starts from the beginning, ``"now"`` from
                      the current state

        :rtype: :class:`~aiosofa.feeds.ChangesBatch`
        """
        options['feed'] = FeedMode.NORMAL
        options['since'] = 0 if token is None else token
        feed = (await self.changes(auth=auth, **options)).unwrap()
        await feed.fetch()
        return feed.batch()

    @returns_result
    async def compact(self, ddoc_name=None, *, auth=None):
        """Initiates :ref:`database <api/db/compact>`
        or :ref:`view index <api/db/compact/ddoc>` compaction.

        :param str ddoc_name: Design document name. If specified initiates
                              view index compaction instead of database

        :rtype: dict
        """
        path = ['_compact']
        if ddoc_name is not None:
            path.append(ddoc_name)
        resp = await self.resource(*path).post(auth=auth)
        await resp.maybe_raise_error(database=self.name)
        return await resp.json(expect=dict)

    @returns_result
    async def revs_limit(self, count=None, *, auth=None):
        """Returns the :ref:`limit of database revisions <api/db/revs_limit>`
        to store or updates it if ``count`` parameter was specified.

        :param int count: Amount of revisions to store

        :rtype: int or dict
        """
        if count is None:
            resp = await self.resource.get('_revs_limit', auth=auth)
        else:
            resp = await self.resource.put('_revs_limit',
                                           auth=auth, data=count)
        await resp.maybe_raise_error(database=self.name)
        return await resp.json(expect=(int, dict))

    @returns_result
    async def view_cleanup(self, *, auth=None):
        """:ref:`Removes outdated views <api/db/view_cleanup>` index files.

        :rtype: dict
        """
        resp = await self.resource.post('_view_cleanup', auth=auth)
        await resp.maybe_raise_error(database=self.name)
        return await resp.json(expect=dict)
