# -*- coding: utf-8 -*-
#
# Copyright (C) 2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import abc
from collections import namedtuple
from collections.abc import Mapping

__all__ = (
    'AttachmentStub',
    'Doc',
    'DocumentType',
    'from_wire',
    'to_wire',
)


#: Keys which never end up in document body
RESERVED_KEYS = frozenset({
    '_id', '_rev', 'id', 'rev',
    'type', 'attachments', '_attachments'
})


class DocumentType(object, metaclass=abc.ABCMeta):
    """Interface of a document type which knows how to convert itself to and
    from the CouchDB wire shape and which database it belongs to."""

    #: Default database for documents of this type
    database_name = None

    @abc.abstractmethod
    def to_wire(self):
        """Returns flat JSON-friendly :class:`dict`."""
        raise NotImplementedError  # pragma: no cover

    @classmethod
    @abc.abstractmethod
    def from_wire(cls, data):
        """Builds a document instance from decoded JSON object."""
        raise NotImplementedError  # pragma: no cover


class AttachmentStub(namedtuple('AttachmentStub', [
        'content_type', 'length', 'digest', 'revpos', 'stub', 'data'])):
    """Attachment metadata as embedded into a document."""

    __slots__ = ()

    @classmethod
    def from_wire(cls, data):
        return cls(data.get('content_type'),
                   data.get('length'),
                   data.get('digest'),
                   data.get('revpos'),
                   data.get('stub', False),
                   data.get('data'))


class Doc(namedtuple('Doc', ['id', 'rev', 'body', 'attachments', 'type']),
          DocumentType):
    """In-memory document: ID, revision, attachment stubs, optional type tag
    and opaque body which never holds the reserved keys.

    >>> doc = Doc('abc', body={'name': 'Alice'})
    >>> doc.to_wire()
    {'name': 'Alice', '_id': 'abc'}
    >>> Doc.from_wire({'_id': 'abc', '_rev': '1-x', 'name': 'Alice'})
    Doc(id='abc', rev='1-x', body={'name': 'Alice'}, attachments={}, type=None)

    Updates produce new values:

    >>> doc._replace(rev='2-y').rev
    '2-y'
    """

    __slots__ = ()

    def __new__(cls, id='', rev='', body=None, attachments=None, type=None):
        return super().__new__(cls, id or '', rev or '', dict(body or {}),
                               dict(attachments or {}), type or None)

    def to_wire(self):
        """Merges body with ``_id``, ``_rev``, ``type`` and ``attachments``
        fields, skipping the empty ones.

        :rtype: dict
        """
        data = dict(self.body)
        if self.id:
            data['_id'] = self.id
        if self.rev:
            data['_rev'] = self.rev
        if self.type:
            data['type'] = self.type
        if self.attachments:
            data['attachments'] = self.attachments
        return data

    @classmethod
    def from_wire(cls, data):
        """Builds document from either document shape (``_id``/``_rev``) or
        write acknowledgement shape (``id``/``rev``). Document shape wins if
        both are present.

        :rtype: :class:`Doc`
        """
        if not isinstance(data, Mapping):
            raise TypeError('Mapping expected, got {!r}'.format(type(data)))
        if '_id' in data:
            docid, rev = data['_id'], data.get('_rev')
        else:
            docid, rev = data.get('id'), data.get('rev')
        attachments = data.get('_attachments', data.get('attachments'))
        body = {key: value for key, value in data.items()
                if key not in RESERVED_KEYS}
        return cls(docid, rev, body, attachments, data.get('type'))

    @property
    def deleted(self):
        return self.body.get('_deleted', False)

    def attachment_stubs(self):
        """Returns attachments metadata by name.

        :rtype: dict
        """
        return {name: AttachmentStub.from_wire(stub)
                for name, stub in self.attachments.items()}


def to_wire(doc):
    """Converts document to the wire shape. Accepts :class:`DocumentType`
    instances and plain mappings."""
    if isinstance(doc, DocumentType):
        return doc.to_wire()
    if isinstance(doc, Mapping):
        return dict(doc)
    raise TypeError('Mapping or DocumentType instance expected, got {!r}'
                    ''.format(type(doc)))


def from_wire(data, doc_class=Doc):
    """Decodes wire document with the given document type."""
    return doc_class.from_wire(data)
