# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

from .client import Resource
from .document import Document
from .errors import returns_result
from .records import Doc
from .views import View

__all__ = (
    'DesignDocument',
)


class DesignDocument(object):
    """Implementation of :ref:`CouchDB Design Document API <api/ddoc>`."""

    #: Default :class:`~aiosofa.document.Document` instance class.
    document_class = Document
    #: :class:`Views requesting  helper<aiosofa.views.View>`
    view_class = View

    def __init__(self, url_or_resource, *,
                 docid=None,
                 database=None,
                 doc_class=Doc,
                 document_class=None,
                 view_class=None):
        if document_class is not None:
            self.document_class = document_class
        if view_class is not None:
            self.view_class = view_class
        if isinstance(url_or_resource, str):
            url_or_resource = Resource(url_or_resource)
        if docid is not None and not docid.startswith('_design/'):
            docid = '_design/' + docid
        self.resource = url_or_resource
        self.database = database
        self.doc_class = doc_class
        self._document = self.document_class(self.resource,
                                             docid=docid,
                                             database=database,
                                             doc_class=doc_class)

    def __getitem__(self, attname):
        return self._document[attname]

    @property
    def id(self):
        """Returns a document id specified in class constructor."""
        return self.doc.id

    @property
    def name(self):
        """Returns design document name without ``_design/`` prefix."""
        docid = self.doc.id
        if docid is not None and '/' in docid:
            return docid.split('/', 1)[1]
        return docid

    @property
    def doc(self):
        """Returns :attr:`document_class` instance to operate with design
        document as with regular CouchDB document.

        :rtype: :class:`~aiosofa.document.Document`
        """
        return self._document

    @returns_result
    async def info(self, *, auth=None):
        """:ref:`Returns view index information <api/ddoc/info>`.

        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: dict
        """
        resp = await self.resource.get('_info', auth=auth)
        await resp.maybe_raise_error(doc_id=self.id, database=self.database)
        return await resp.json(expect=dict)

    @returns_result
    async def view(self, view_name, *keys, auth=None, **options):
        """Queries a :ref:`stored view <api/ddoc/view>`.

        :param str view_name: View function name
        :param keys: View keys to fetch. Two or more keys are sent within
                     request body, a single key becomes ``key`` option

        :param auth: :class:`aiosofa.authn.AuthProvider` instance
        :param options: View query options, see
                        :data:`aiosofa.params.VIEW_PARAMS`.
                        ``key``, ``startkey`` and ``endkey`` are JSON encoded

        :rtype: :class:`~aiosofa.views.ViewResult`
        """
        if keys:
            options['keys'] = keys
        view = self.view_class(self.resource('_view', view_name),
                               database=self.database,
                               doc_class=self.doc_class)
        return await view.request(auth=auth, params=options)
