# -*- coding: utf-8 -*-
#
# Copyright (C) 2014-2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

"""
Exception hierarchy
-------------------

.. code::

  BaseException
  +-- Exception
      +-- aiosofa.errors.HttpErrorException
          +-- aiosofa.errors.BadRequest
          +-- aiosofa.errors.Unauthorized
          +-- aiosofa.errors.Forbidden
          +-- aiosofa.errors.NotFound
          |   +-- aiosofa.errors.IndexNotFound
          +-- aiosofa.errors.Conflict
          +-- aiosofa.errors.ServerError
          +-- aiosofa.errors.NetworkError
          +-- aiosofa.errors.Unknown
              +-- aiosofa.errors.ChangesDecodeError

Remote failures are never raised out of the public API. Every remote operation
returns a :class:`Result` which holds either the decoded payload or one of the
errors above. Call :meth:`Result.unwrap` to opt into exceptions.
"""

import functools


__all__ = (
    'HttpErrorException',
    'BadRequest',
    'Unauthorized',
    'Forbidden',
    'NotFound',
    'IndexNotFound',
    'Conflict',
    'ServerError',
    'NetworkError',
    'Unknown',
    'ChangesDecodeError',
    'Result',
    'classify',
    'maybe_raise_error',
    'returns_result'
)


class HttpErrorException(Exception):
    """Base class for CouchDB related errors."""

    #: HTTP status code, ``None`` when no response was received
    code = None
    #: Default machine readable reason
    default_error = 'unknown_error'

    def __init__(self, error='', reason='', headers=None, *,
                 status=None, doc_id=None, database=None):
        super().__init__(error, reason)
        self.error = error or self.default_error
        self.reason = reason
        self.headers = headers
        self.status = self.code if status is None else status
        self.doc_id = doc_id
        self.database = database

    def __str__(self):
        return '[{}] {}'.format(self.error, self.reason)

    def __repr__(self):
        return '<{}.{}(status={!r}, error={!r}, reason={!r})>'.format(
            self.__module__, self.__class__.__qualname__,
            self.status, self.error, self.reason)


class BadRequest(HttpErrorException):
    """The request could not be understood by the server due to malformed
    syntax. The whole decoded response body is kept as :attr:`details`."""

    code = 400
    default_error = 'bad_request'

    def __init__(self, error='', reason='', headers=None, *, details=None,
                 **kwargs):
        super().__init__(error, reason, headers, **kwargs)
        self.details = details


class Unauthorized(HttpErrorException):
    """The request requires user authentication."""

    code = 401
    default_error = 'unauthorized'


class Forbidden(HttpErrorException):
    """The server understood the request, but is refusing to fulfill it."""

    code = 403
    default_error = 'forbidden'


class NotFound(HttpErrorException):
    """The server has not found anything matching the Request-URI."""

    code = 404
    default_error = 'not_found'

    def __str__(self):
        if self.doc_id is not None and self.database is not None:
            return "Document '{}' not found in database '{}'".format(
                self.doc_id, self.database)
        elif self.doc_id is not None:
            return 'Document not found: {}'.format(self.doc_id)
        elif self.database is not None:
            return 'Database not found: {}'.format(self.database)
        return super().__str__()


class IndexNotFound(NotFound):
    """Mango index is missing in the database index list."""

    default_error = 'index_not_found'

    def __init__(self, name, **kwargs):
        reason = 'Index {!r} not found'.format(name)
        super().__init__('', reason, **kwargs)
        self.name = name

    def __str__(self):
        return "Index '{}' not found in database '{}'".format(self.name,
                                                              self.database)


class Conflict(HttpErrorException):
    """The request could not be completed due to a conflict with the current
    state of the resource. :attr:`rev` holds the conflicting revision when
    the server reports one."""

    code = 409
    default_error = 'conflict'

    def __init__(self, error='', reason='', headers=None, *, rev=None,
                 **kwargs):
        super().__init__(error, reason, headers, **kwargs)
        self.rev = rev


class ServerError(HttpErrorException):
    """The server encountered an unexpected condition which prevented it from
    fulfilling the request. :attr:`status` keeps the actual ``5xx`` code."""

    code = 500
    default_error = 'internal_server_error'


class NetworkError(HttpErrorException):
    """Request failed before any response status was received: connection
    refused, timeout, TLS failure or connection drop while streaming."""

    default_error = 'network_error'

    def __init__(self, reason='', *, cause=None, **kwargs):
        if not reason and cause is not None:
            reason = str(cause) or type(cause).__name__
        super().__init__('', reason, **kwargs)
        self.cause = cause


class Unknown(HttpErrorException):
    """Response with unexpected status or unexpected body shape."""

    default_error = 'unknown_error'

    def __init__(self, error='', reason='', headers=None, *, body=None,
                 **kwargs):
        super().__init__(error, reason, headers, **kwargs)
        self.body = body


class ChangesDecodeError(Unknown):
    """Changes feed emitted a line which is not a valid JSON object."""

    default_error = 'decode_error'

    def __init__(self, line, *, cause=None, **kwargs):
        super().__init__('', 'invalid changes feed line: {!r}'.format(line),
                         body=line, **kwargs)
        self.cause = cause


HTTP_ERROR_BY_CODE = {
    err.code: err
    for err in (BadRequest, Unauthorized, Forbidden, NotFound, Conflict)
}


class Result(object):
    """Typed outcome of a remote operation: either a success :attr:`value`
    or an :attr:`error` instance of :exc:`HttpErrorException`."""

    __slots__ = ('value', 'error')

    def __init__(self, value=None, error=None):
        assert error is None or isinstance(error, HttpErrorException)
        self.value = value
        self.error = error

    def __repr__(self):
        if self.error is not None:
            return '<Result error={!r}>'.format(self.error)
        return '<Result ok value={!r}>'.format(self.value)

    def __eq__(self, other):
        if not isinstance(other, Result):
            return NotImplemented
        return (self.value, self.error) == (other.value, other.error)

    @property
    def ok(self):
        """``True`` if operation succeeded."""
        return self.error is None

    def unwrap(self):
        """Returns the success value or raises the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    def map(self, func):
        """Applies ``func`` to the success value, errors pass unchanged."""
        if self.error is not None:
            return self
        return Result(func(self.value))


def _fields(body):
    if isinstance(body, dict):
        error, reason = body.get('error'), body.get('reason')
        return (error if isinstance(error, str) else '',
                reason if isinstance(reason, str) else '')
    if isinstance(body, (bytes, bytearray)):
        body = body.decode('utf-8', 'replace')
    if isinstance(body, str):
        return '', body
    return '', ''


def classify(status, body, *, doc_id=None, database=None, headers=None):
    """Maps response status code and decoded body to a :class:`Result`.

    Pure function: it never raises and never performs I/O.

    :param int status: HTTP status code
    :param body: Decoded JSON payload or raw body
    :param str doc_id: Document ID the request was made for, if any
    :param str database: Database name the request was made for, if any
    :param headers: Response headers

    :rtype: :class:`Result`
    """
    context = {'doc_id': doc_id, 'database': database}
    if not isinstance(status, int) or isinstance(status, bool):
        return Result(error=Unknown(
            '', 'invalid status code: {!r}'.format(status), headers,
            body=body, **context))

    if 200 <= status < 300:
        return Result(body)

    error, reason = _fields(body)
    if status == 400:
        exc = BadRequest(error, reason, headers, details=body, **context)
    elif status == 409:
        rev = body.get('rev') if isinstance(body, dict) else None
        exc = Conflict(error, reason, headers, rev=rev, **context)
    elif status in HTTP_ERROR_BY_CODE:
        exc = HTTP_ERROR_BY_CODE[status](error, reason, headers, **context)
    elif 500 <= status < 600:
        exc = ServerError(error, reason, headers, status=status, **context)
    else:
        exc = Unknown(error, reason, headers, status=status, body=body,
                      **context)
    return Result(error=exc)


async def maybe_raise_error(resp, *, doc_id=None, database=None):
    """Raises :exc:`HttpErrorException` in case of non ``2xx`` response
    status code. Response body is consumed only on failure."""
    if 200 <= resp.status < 300:
        return
    try:
        data = await resp.json()
    except Unknown:
        data = await resp.read()
    result = classify(resp.status, data, doc_id=doc_id, database=database,
                      headers=resp.headers)
    raise result.error


def returns_result(f):
    """Turns a coroutine function which raises :exc:`HttpErrorException`
    into one which returns a :class:`Result`."""
    @functools.wraps(f)
    async def wrapper(*args, **kwargs):
        try:
            value = await f(*args, **kwargs)
        except HttpErrorException as exc:
            return Result(error=exc)
        return Result(value)
    return wrapper
