# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

from collections import namedtuple

from .client import Resource
from .errors import returns_result
from .hdrs import (
    ACCEPT,
    CONTENT_LENGTH,
    CONTENT_MD5,
    CONTENT_TYPE,
    ETAG,
)
from .telemetry import operation_context

__all__ = (
    'Attachment',
    'AttachmentInfo',
)


#: Attachment metadata read from ``HEAD`` response headers
AttachmentInfo = namedtuple('AttachmentInfo', [
    'content_type', 'content_length', 'content_md5', 'etag'])

#: Attachment content with its type
AttachmentContent = namedtuple('AttachmentContent', ['data', 'content_type'])


class Attachment(object):
    """Implementation of :ref:`CouchDB Attachment API <api/doc/attachment>`.
    Every remote method returns :class:`~aiosofa.errors.Result`."""

    def __init__(self, url_or_resource, *, name=None, doc_id=None,
                 database=None):
        if isinstance(url_or_resource, str):
            url_or_resource = Resource(url_or_resource)
        self.resource = url_or_resource
        self._name = name
        self.doc_id = doc_id
        self.database = database

    @property
    def name(self):
        """Returns attachment name specified in class constructor."""
        return self._name

    def _context(self):
        return {'doc_id': self.doc_id, 'database': self.database}

    def _trace(self, operation):
        return operation_context(operation, **self._context())

    @returns_result
    async def exists(self, rev=None, *, auth=None):
        """Checks if `attachment exists`_. Assumes success on receiving response
        with `200 OK` status.

        :param str rev: Document revision
        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: bool

        .. _attachment exists: http://docs.couchdb.org/en/latest/api/document/attachments.html#head--db-docid-attname
        """
        resp = await self.resource.head(auth=auth, params={'rev': rev})
        await resp.read()
        if resp.status != 404:
            await resp.maybe_raise_error(**self._context())
        return resp.status == 200

    @returns_result
    async def info(self, rev=None, *, auth=None):
        """Returns attachment metadata without fetching its content.

        :param str rev: Document revision
        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: :class:`AttachmentInfo`
        """
        resp = await self.resource.head(auth=auth, params={'rev': rev})
        await resp.read()
        await resp.maybe_raise_error(**self._context())
        length = resp.headers.get(CONTENT_LENGTH)
        return AttachmentInfo(resp.headers.get(CONTENT_TYPE),
                              int(length) if length is not None else None,
                              resp.headers.get(CONTENT_MD5),
                              resp.headers.get(ETAG))

    @returns_result
    async def get(self, rev=None, *, auth=None):
        """`Returns an attachment`_ content.

        :param str rev: Document revision
        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: :class:`AttachmentContent`

        .. _Returns an attachment: http://docs.couchdb.org/en/latest/api/document/attachments.html#get--db-docid-attname
        """
        resp = await self.resource.get(
            auth=auth,
            headers={ACCEPT: '*/*'},
            params={'rev': rev},
            trace=self._trace('attachment_download'))
        await resp.maybe_raise_error(**self._context())
        data = await resp.read()
        return AttachmentContent(data, resp.headers.get(CONTENT_TYPE))

    @returns_result
    async def update(self, data, *,
                     auth=None,
                     content_type='application/octet-stream',
                     rev=None):
        """`Attaches a file`_ to document.

        :param bytes data: Attachment content
        :param auth: :class:`aiosofa.authn.AuthProvider` instance
        :param str content_type: Attachment `Content-Type` header
        :param str rev: Document revision

        :rtype: dict

        .. _Attaches a file: http://docs.couchdb.org/en/latest/api/document/attachments.html#put--db-docid-attname
        """
        if isinstance(data, str):
            data = data.encode('utf-8')
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError('bytes expected, got {!r}'.format(type(data)))
        resp = await self.resource.put(auth=auth,
                                       data=data,
                                       headers={CONTENT_TYPE: content_type},
                                       params={'rev': rev},
                                       trace=self._trace('attachment_upload'))
        await resp.maybe_raise_error(**self._context())
        return await resp.json(expect=dict)

    @returns_result
    async def delete(self, rev, *, auth=None):
        """`Deletes an attachment`_.

        :param str rev: Document revision
        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: dict

        .. _Deletes an attachment: http://docs.couchdb.org/en/latest/api/document/attachments.html#delete--db-docid-attname
        """
        resp = await self.resource.delete(auth=auth, params={'rev': rev})
        await resp.maybe_raise_error(**self._context())
        return await resp.json(expect=dict)
