# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

"""Query parameters encoding for views, ``_all_docs`` and changes feeds.

CouchDB parses ``key``-like query parameters as JSON, so these values are
always JSON-encoded, even plain strings:

>>> encode_view_params({'key': 'start', 'limit': 10})
{'key': '"start"', 'limit': 10}

Booleans and integers stay typed, the transport stringifies them. Unknown
options are dropped.
"""

import enum
import json


__all__ = (
    'FeedMode',
    'Stale',
    'Style',
    'encode_changes_params',
    'encode_params',
    'encode_view_params',
    'json_param',
)


class Stale(enum.Enum):
    """Allowed values of the view ``stale`` option."""

    OK = 'ok'
    UPDATE_AFTER = 'update_after'


class FeedMode(enum.Enum):
    """Changes feed types."""

    NORMAL = 'normal'
    LONGPOLL = 'longpoll'
    CONTINUOUS = 'continuous'
    EVENTSOURCE = 'eventsource'


class Style(enum.Enum):
    """Changes feed output style."""

    MAIN_ONLY = 'main_only'
    ALL_DOCS = 'all_docs'


#: Filter name CouchDB uses for document ids filtering
DOC_IDS_FILTER = '_doc_ids'
#: Filter name CouchDB uses for view based filtering
VIEW_FILTER = '_view'


def json_param(value):
    """JSON-encodes a key-like parameter value."""
    return json.dumps(value)


def symbol(enum_class, value):
    """Converts a symbolic value into its canonical wire token.

    Accepts an enum member, its value or its name in any case.

    :raises: :exc:`ValueError` for unrecognized values
    """
    if isinstance(value, enum_class):
        return value.value
    if isinstance(value, str):
        token = value.lower()
        for item in enum_class:
            if token in (item.value, item.name.lower()):
                return item.value
    raise ValueError('invalid {} value: {!r}; expected one of: {}'.format(
        enum_class.__name__, value,
        ', '.join(item.value for item in enum_class)))


def _boolean(value):
    if isinstance(value, bool):
        return value
    return None


def _integer(value):
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


def _string(value):
    if isinstance(value, str):
        return value
    return None


def _stale(value):
    try:
        return symbol(Stale, value)
    except ValueError:
        return None


def _heartbeat(value):
    if value is True:
        return value
    return _integer(value)


def _since(value):
    # sequence tokens are opaque, never decomposed
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return value
    return None


#: Options which CouchDB parses as JSON values
JSON_PARAMS = frozenset({
    'key', 'keys',
    'startkey', 'endkey',
    'start_key', 'end_key'
})

VIEW_PARAMS = {
    'att_encoding_info': _boolean,
    'attachments': _boolean,
    'conflicts': _boolean,
    'descending': _boolean,
    'endkey_docid': _string,
    'end_key_doc_id': _string,
    'group': _boolean,
    'group_level': _integer,
    'include_docs': _boolean,
    'inclusive_end': _boolean,
    'limit': _integer,
    'reduce': _boolean,
    'skip': _integer,
    'sorted': _boolean,
    'stable': _boolean,
    'stale': _stale,
    'startkey_docid': _string,
    'start_key_doc_id': _string,
    'update': _string,
    'update_seq': _boolean,
}

CHANGES_PARAMS = {
    'att_encoding_info': _boolean,
    'attachments': _boolean,
    'conflicts': _boolean,
    'descending': _boolean,
    'feed': lambda value: symbol(FeedMode, value),
    'filter': _string,
    'heartbeat': _heartbeat,
    'include_docs': _boolean,
    'limit': _integer,
    'seq_interval': _integer,
    'since': _since,
    'style': lambda value: symbol(Style, value),
    'timeout': _integer,
    'view': _string,
}


def encode_params(options, schema, *, json_params=frozenset()):
    """Encodes option mapping by the given ``schema``.

    :param dict options: Options to encode. ``Ellipsis`` or ``None`` values
                         mean "not set"; for JSON encoded options ``None``
                         is the JSON ``null`` key and only ``Ellipsis``
                         means "not set"
    :param dict schema: Mapping of option name to converter function which
                        returns wire value or ``None`` to drop the option
    :param json_params: Names of options which are JSON encoded

    :rtype: dict
    """
    params = {}
    for key, value in options.items():
        if value is Ellipsis:
            continue
        if key in json_params:
            params[key] = json_param(value)
            continue
        if value is None or key not in schema:
            continue
        value = schema[key](value)
        if value is not None:
            params[key] = value
    return params


def encode_view_params(options):
    """Encodes view and ``_all_docs`` query options.

    :rtype: dict
    """
    keys = options.get('keys', ...)
    if isinstance(keys, (str, bytes)):
        raise TypeError('keys should be a list of keys, got {!r}'.format(keys))
    return encode_params(options, VIEW_PARAMS, json_params=JSON_PARAMS)


def encode_changes_params(options):
    """Encodes changes feed query options.

    Passing ``doc_ids`` sets ``filter`` to ``_doc_ids`` together with the
    JSON encoded ids list; ``view`` sets ``filter`` to ``_view``.

    >>> encode_changes_params({'doc_ids': ['a', 'b']})
    {'filter': '_doc_ids', 'doc_ids': '["a", "b"]'}

    :raises: :exc:`ValueError` on unknown ``feed`` or ``style`` values or on
             conflicting ``filter``

    :rtype: dict
    """
    options = dict(options)
    doc_ids = options.pop('doc_ids', None)
    params = encode_params(options, CHANGES_PARAMS)

    if doc_ids is not None:
        if isinstance(doc_ids, (str, bytes)):
            raise TypeError('doc_ids should be a list of document ids')
        if params.get('filter', DOC_IDS_FILTER) != DOC_IDS_FILTER:
            raise ValueError('doc_ids cannot be combined with filter %r'
                             % params['filter'])
        params['filter'] = DOC_IDS_FILTER
        params['doc_ids'] = json_param(list(doc_ids))

    if 'view' in params:
        if params.get('filter', VIEW_FILTER) != VIEW_FILTER:
            raise ValueError('view cannot be combined with filter %r'
                             % params['filter'])
        params['filter'] = VIEW_FILTER

    return params
