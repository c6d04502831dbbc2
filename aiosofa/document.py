# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import json
import logging
import urllib.parse
from collections.abc import Mapping

from .attachment import Attachment
from .client import Resource
from .errors import returns_result
from .hdrs import DESTINATION, ETAG
from .records import Doc, DocumentType, to_wire
from .telemetry import operation_context

__all__ = (
    'Document',
)

log = logging.getLogger(__name__)


class Document(object):
    """Implementation of :ref:`CouchDB Document API <api/doc>`.

    Every remote method returns :class:`~aiosofa.errors.Result` with decoded
    payload or classified error which carries the document ID and database
    name.
    """

    attachment_class = Attachment

    def __init__(self, url_or_resource, *,
                 docid=None,
                 database=None,
                 doc_class=Doc,
                 attachment_class=None):
        if attachment_class is not None:
            self.attachment_class = attachment_class
        if isinstance(url_or_resource, str):
            url_or_resource = Resource(url_or_resource)
        self.resource = url_or_resource
        self._docid = docid
        self.database = database
        self.doc_class = doc_class

    def __getitem__(self, attname):
        return self.attachment(attname)

    @property
    def id(self):
        """Returns associated document ID."""
        if self._docid is None:
            docid = self.resource.url.rsplit('/', 1)[-1]
            self._docid = urllib.parse.unquote(docid)
        return self._docid

    def _context(self):
        return {'doc_id': self.id, 'database': self.database}

    def _trace(self, operation):
        return operation_context(operation, **self._context())

    def attachment(self, attname):
        """Returns :class:`~aiosofa.attachment.Attachment` instance against
        specified attachment name. No request is made.

        :param str attname: Attachment name

        :rtype: :attr:`aiosofa.document.Document.attachment_class`
        """
        return self.attachment_class(self.resource(*attname.split('/')),
                                     name=attname,
                                     doc_id=self.id,
                                     database=self.database)

    #: alias for :meth:`aiosofa.document.Document.attachment`
    att = attachment

    @returns_result
    async def exists(self, rev=None, *, auth=None):
        """Checks if `document exists`_ in the database.

        :param str rev: Document revision
        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: bool

        .. _document exists: http://docs.couchdb.org/en/latest/api/document/common.html#head--db-docid
        """
        resp = await self.resource.head(auth=auth, params={'rev': rev})
        await resp.read()
        if resp.status == 404:
            return False
        await resp.maybe_raise_error(**self._context())
        return True

    @returns_result
    async def rev(self, *, auth=None):
        """Returns current document revision taken from the ``ETag`` header
        of a ``HEAD`` request.

        :rtype: str
        """
        resp = await self.resource.head(auth=auth)
        await resp.read()
        await resp.maybe_raise_error(**self._context())
        etag = resp.headers.get(ETAG)
        return etag.strip('"') if etag else None

    @returns_result
    async def get(self, rev=None, *,
                  auth=None,
                  att_encoding_info=None,
                  attachments=None,
                  atts_since=None,
                  conflicts=None,
                  deleted_conflicts=None,
                  local_seq=None,
                  meta=None,
                  revs=None,
                  revs_info=None):
        """`Returns a document`_ object.

        :param str rev: Document revision

        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :param bool att_encoding_info: Includes encoding information in an
                                       attachment stubs
        :param bool attachments: Includes the Base64-encoded content of an
                                 attachments in the documents
        :param list atts_since: Includes attachments that was added since
                                the specified revisions
        :param bool conflicts: Includes conflicts information in the documents
        :param bool deleted_conflicts: Includes information about deleted
                                       conflicted revisions in the document
        :param bool local_seq: Includes local sequence number in the document
        :param bool meta: Includes meta information in the document.
        :param bool revs: Includes information about all known revisions
        :param bool revs_info: Includes information about all known revisions
                               and their status

        :rtype: :attr:`doc_class` instance

        .. _Returns a document: http://docs.couchdb.org/en/latest/api/document/common.html#get--db-docid
        """
        params = {
            'att_encoding_info': att_encoding_info,
            'attachments': attachments,
            'conflicts': conflicts,
            'deleted_conflicts': deleted_conflicts,
            'local_seq': local_seq,
            'meta': meta,
            'rev': rev,
            'revs': revs,
            'revs_info': revs_info,
        }
        if atts_since is not None:
            params['atts_since'] = json.dumps(atts_since)

        resp = await self.resource.get(auth=auth, params=params,
                                       trace=self._trace('doc_get'))
        await resp.maybe_raise_error(**self._context())
        return self.doc_class.from_wire(await resp.json(expect=dict))

    async def get_revision(self, rev, *, auth=None):
        """Returns the document at specific revision, e.g. a conflicting one.

        :param str rev: Document revision

        :rtype: :class:`~aiosofa.errors.Result`
        """
        if not rev:
            raise ValueError('revision is required')
        return await self.get(rev, auth=auth)

    @returns_result
    async def get_conflicts(self, *, auth=None):
        """Returns the current winning revision followed by every conflicting
        revision of the document.

        :rtype: list
        """
        winner = (await self.get(auth=auth, conflicts=True)).unwrap()
        docs = [winner]
        for rev in winner.body.get('_conflicts', []):
            log.debug('fetching conflicting revision %s of %s', rev, self.id)
            docs.append((await self.get_revision(rev, auth=auth)).unwrap())
        return docs

    @returns_result
    async def attachments(self, rev=None, *, auth=None):
        """Returns document attachments stubs by name.

        :rtype: dict
        """
        doc = (await self.get(rev, auth=auth)).unwrap()
        return doc.attachment_stubs()

    @returns_result
    async def update(self, doc, *, auth=None, batch=None, new_edits=None,
                     rev=None):
        """`Updates a document`_ on server. Creates it if there is no ``rev``.

        :param doc: :class:`~aiosofa.records.DocumentType` instance or
                    :class:`~collections.abc.Mapping`

        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :param str batch: Updates in batch mode (asynchronously).
                          This argument accepts only ``"ok"`` value.
        :param bool new_edits: Signs about new document edition. When ``False``
                               allows to create conflicts manually
        :param str rev: Document revision. Optional, since document revision
                        is also respected

        :rtype: dict

        .. _Updates a document: http://docs.couchdb.org/en/latest/api/document/common.html#put--db-docid
        """
        if not isinstance(doc, (DocumentType, Mapping)):
            raise TypeError('Mapping or DocumentType instance expected')
        data = to_wire(doc)

        if data.get('_id', self.id) != self.id:
            raise ValueError('Attempt to store document with different ID: '
                             '%r ; expected: %r. May you want to .copy() it?'
                             % (data['_id'], self.id))

        if rev is None:
            rev = data.get('_rev') or None
        params = {'batch': batch, 'new_edits': new_edits, 'rev': rev}

        resp = await self.resource.put(auth=auth, data=data, params=params,
                                       trace=self._trace('doc_update'))
        await resp.maybe_raise_error(**self._context())
        return await resp.json(expect=dict)

    @returns_result
    async def remove(self, rev, *, auth=None):
        """`Deletes a document`_ from server.

        :param str rev: Document revision
        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: dict

        .. _Deletes a document: http://docs.couchdb.org/en/latest/api/document/common.html#delete--db-docid
        """
        resp = await self.resource.delete(auth=auth, params={'rev': rev})
        await resp.maybe_raise_error(**self._context())
        return await resp.json(expect=dict)

    @returns_result
    async def copy(self, newid, rev=None, *, auth=None):
        """`Copies a document`_ with the new ID within the same database.

        :param str newid: New document ID
        :param str rev: New document ID revision. Used for copying over existed
                        document
        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: dict

        .. _Copies a document: http://docs.couchdb.org/en/latest/api/document/common.html#copy--db-docid
        """
        dest = newid
        if rev is not None:
            dest += '?rev=' + rev
        resp = await self.resource.copy(auth=auth,
                                        headers={DESTINATION: dest})
        await resp.maybe_raise_error(**self._context())
        return await resp.json(expect=dict)
