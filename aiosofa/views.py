# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

from collections import namedtuple
from collections.abc import Mapping

from .errors import Unknown
from .params import encode_view_params
from .records import Doc

__all__ = (
    'View',
    'ViewResult',
    'ViewRow',
)


class ViewRow(namedtuple('ViewRow', ['id', 'key', 'value', 'doc', 'error'])):
    """Single view row. :attr:`doc` is set for ``include_docs`` requests,
    :attr:`error` for ``keys`` which matched nothing in ``_all_docs``."""

    __slots__ = ()

    @classmethod
    def from_wire(cls, data, doc_class=Doc):
        if not isinstance(data, Mapping):
            raise Unknown('', 'unexpected view row', body=data)
        doc = data.get('doc')
        if isinstance(doc, Mapping):
            doc = doc_class.from_wire(doc)
        else:
            doc = None
        return cls(data.get('id'), data.get('key'), data.get('value'), doc,
                   data.get('error'))


class ViewResult(namedtuple('ViewResult', ['rows', 'total_rows', 'offset',
                                           'update_seq'])):
    """Decoded view response."""

    __slots__ = ()

    @classmethod
    def from_wire(cls, data, doc_class=Doc):
        """Builds view result from response payload.

        :raises: :exc:`~aiosofa.errors.Unknown` if there are no ``rows``
        """
        if not isinstance(data, Mapping) \
                or not isinstance(data.get('rows'), list):
            raise Unknown('', 'unexpected view response', body=data)
        rows = [ViewRow.from_wire(row, doc_class) for row in data['rows']]
        return cls(rows,
                   data.get('total_rows'),
                   data.get('offset'),
                   data.get('update_seq'))

    def docs(self):
        """Returns documents of the rows which carry them."""
        return [row.doc for row in self.rows if row.doc is not None]


class View(object):
    """Views requesting helper."""

    def __init__(self, resource, *, database=None, doc_class=Doc):
        self.resource = resource
        self.database = database
        self.doc_class = doc_class

    async def request(self, *, auth=None, data=None, params=None):
        """Requests a view associated with the owned resource.

        :param auth: :class:`aiosofa.authn.AuthProvider` instance
        :param dict data: View request payload
        :param dict params: View request query options, see
                            :func:`aiosofa.params.encode_view_params`

        :rtype: :class:`ViewResult`
        """
        if params is not None:
            params, data = self.handle_keys_param(dict(params), data)
            params = encode_view_params(params)

        if data:
            request = self.resource.post
        else:
            request = self.resource.get

        resp = await request(auth=auth, data=data, params=params)
        await resp.maybe_raise_error(database=self.database)
        body = await resp.json()
        try:
            return ViewResult.from_wire(body, self.doc_class)
        except Unknown as exc:
            exc.database = self.database
            raise

    @staticmethod
    def handle_keys_param(params, data):
        keys = params.pop('keys', ())
        if keys is None or keys is Ellipsis:
            return params, data
        if isinstance(keys, (bytes, str)):
            raise TypeError('keys should be a list of keys, got {!r}'
                            ''.format(keys))
        keys = list(keys)

        if len(keys) >= 2:
            if data is None:
                data = {'keys': keys}
            elif isinstance(data, dict):
                data['keys'] = keys
            else:
                params['keys'] = keys
        elif keys:
            if params.get('key', ...) is not Ellipsis:
                raise ValueError('key and keys options are mutually exclusive')
            params['key'] = keys[0]

        return params, data
