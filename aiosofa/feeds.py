# -*- coding: utf-8 -*-
#
# Copyright (C) 2014-2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

"""Changes feed processing.

Feeds are pull based: nothing is read from the connection until the caller
asks for the next event with :meth:`Feed.next` or ``async for``. Every feed
instance owns its buffer and its connection::

    result = await db.changes(feed='continuous', since='now')
    feed = result.unwrap()
    async for change in feed:
        print(change.seq, change.id, change.revs)

Feed lifecycle::

    IDLE -> CONNECTING -> STREAMING -> COMPLETED | FAILED | CANCELLED

Once a feed reaches a terminal state it emits nothing but ``None``.
"""

import abc
import asyncio
import enum
import json
import logging
from collections import deque, namedtuple
from collections.abc import Mapping

from aiohttp.helpers import parse_mimetype

from .client import TRANSPORT_ERRORS
from .errors import ChangesDecodeError, HttpErrorException, NetworkError, Unknown
from .hdrs import CONTENT_TYPE
from .records import Doc

__all__ = (
    'Change',
    'ChangesBatch',
    'ChangesFeed',
    'ContinuousChangesFeed',
    'EventSourceChangesFeed',
    'Feed',
    'FeedState',
    'LineBuffer',
)

log = logging.getLogger(__name__)


class FeedState(enum.Enum):

    IDLE = 'idle'
    CONNECTING = 'connecting'
    STREAMING = 'streaming'
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'

    @property
    def terminal(self):
        return self in (FeedState.COMPLETED,
                        FeedState.FAILED,
                        FeedState.CANCELLED)


class Change(namedtuple('Change', ['seq', 'id', 'revs', 'deleted', 'doc'])):
    """Single changes feed event. :attr:`seq` is an opaque token: store it
    and pass it back as ``since``, never try to interpret it. :attr:`deleted`
    is ``None`` when the server did not report it."""

    __slots__ = ()

    @classmethod
    def from_wire(cls, data, doc_class=Doc):
        """Builds change event from decoded feed item.

        :raises: :exc:`ValueError` if item isn't a change event
        """
        if not isinstance(data, Mapping) or 'id' not in data:
            raise ValueError('not a change event: {!r}'.format(data))
        revs = [item['rev'] for item in data.get('changes') or []
                if isinstance(item, Mapping) and 'rev' in item]
        doc = data.get('doc')
        if isinstance(doc, Mapping):
            doc = doc_class.from_wire(doc)
        else:
            doc = None
        deleted = data.get('deleted')
        return cls(data.get('seq'), data['id'], revs,
                   None if deleted is None else bool(deleted), doc)


#: Result of a one-shot changes request: events in emission order, the token
#: to resume from and the number of changes left behind ``limit``
ChangesBatch = namedtuple('ChangesBatch', ['results', 'last_seq', 'pending'])


class LineBuffer(object):
    """Accumulates stream chunks and cuts complete newline terminated lines
    out of them. Chunk boundaries may fall anywhere, including inside of
    multibyte characters.

    >>> buf = LineBuffer()
    >>> buf.feed(b'{"seq": 1}\\n{"se')
    [b'{"seq": 1}']
    >>> buf.feed(b'q": 2}\\n')
    [b'{"seq": 2}']
    >>> buf.flush()
    b''
    """

    def __init__(self):
        self._buffer = bytearray()

    def __len__(self):
        return len(self._buffer)

    def feed(self, chunk):
        """Appends ``chunk`` to the buffer and returns every completed line
        without line terminators.

        :rtype: list
        """
        self._buffer.extend(chunk)
        lines = []
        while True:
            idx = self._buffer.find(b'\n')
            if idx == -1:
                break
            lines.append(bytes(self._buffer[:idx]).rstrip(b'\r'))
            del self._buffer[:idx + 1]
        return lines

    def flush(self):
        """Returns incomplete tail of the stream and empties the buffer.

        :rtype: bytes
        """
        tail = bytes(self._buffer)
        self._buffer.clear()
        return tail


class Feed(object, metaclass=abc.ABCMeta):
    """Pull based wrapper over a streamed :class:`~aiosofa.client.HttpResponse`.

    :param request: Coroutine function which sends the request and returns
                    :class:`~aiosofa.client.HttpResponse` instance
    :param float idle_timeout: Maximum time to wait for the next chunk of data.
                               Exceeding it fails the feed with
                               :exc:`~aiosofa.errors.NetworkError`
    :param str database: Database name for errors and logs context
    :param doc_class: :class:`~aiosofa.records.DocumentType` used to decode
                      included documents
    """

    def __init__(self, request, *, idle_timeout=None, database=None,
                 doc_class=Doc):
        self._request = request
        self._resp = None
        self._reader = None
        self._state = FeedState.IDLE
        self._error = None
        self._encoding = 'utf-8'
        self.idle_timeout = idle_timeout
        self.database = database
        self.doc_class = doc_class

    def __aiter__(self):
        return self

    async def __anext__(self):
        event = await self.next()
        if event is None:
            raise StopAsyncIteration
        return event

    @property
    def state(self):
        """Current :class:`FeedState`."""
        return self._state

    @property
    def error(self):
        """Error which failed the feed, if any."""
        return self._error

    def _set_state(self, state):
        log.debug('feed %s -> %s', self._state.value, state.value,
                  extra={'database': self.database})
        self._state = state

    def _fail(self, exc):
        self._error = exc
        self._set_state(FeedState.FAILED)
        if self._resp is not None:
            self._resp.close(force=True)
        return exc

    def _complete(self):
        self._set_state(FeedState.COMPLETED)
        self._resp.close()

    async def connect(self):
        """Sends feed request and moves the feed into streaming state.

        :raises: :exc:`~aiosofa.errors.HttpErrorException`
        """
        if self._state is not FeedState.IDLE:
            raise RuntimeError('feed is already {}'.format(self._state.value))
        self._set_state(FeedState.CONNECTING)
        try:
            self._resp = await self._request()
            await self._resp.maybe_raise_error(database=self.database)
        except HttpErrorException as exc:
            raise self._fail(exc)
        except asyncio.CancelledError:
            self.close(force=True)
            raise

        ctype = self._resp.headers.get(CONTENT_TYPE, '').lower()
        self._encoding = parse_mimetype(ctype).parameters.get('charset',
                                                              'utf-8')
        self._set_state(FeedState.STREAMING)
        return self

    async def read_chunk(self):
        """Reads next chunk of data from the connection. Returns ``b''`` on
        the end of the stream and ``None`` if the feed has been cancelled
        while waiting for data.

        :raises: :exc:`~aiosofa.errors.NetworkError`
        """
        self._reader = asyncio.ensure_future(self._resp.content.readany())
        try:
            if self.idle_timeout is None:
                return await self._reader
            return await asyncio.wait_for(self._reader, self.idle_timeout)
        except asyncio.TimeoutError as exc:
            raise self._fail(NetworkError(
                'no data received within {} seconds'.format(self.idle_timeout),
                cause=exc, database=self.database)) from exc
        except asyncio.CancelledError:
            if self._state is FeedState.CANCELLED:
                return None
            self.close(force=True)
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._fail(NetworkError(cause=exc,
                                          database=self.database)) from exc
        finally:
            self._reader = None

    @abc.abstractmethod
    async def next(self):
        """Emits the next event or ``None`` if the feed is exhausted or closed.

        :raises: :exc:`~aiosofa.errors.HttpErrorException` which also moves
                 the feed into :attr:`FeedState.FAILED` state
        """
        raise NotImplementedError  # pragma: no cover

    def is_active(self):
        """Checks if the feed is still able to emit any data.

        :rtype: bool
        """
        return not self._state.terminal

    def close(self, force=False):
        """Cancels the feed and releases its connection. Nothing is emitted
        after this call, including by a :meth:`next` call which is waiting
        for data at the moment.

        :param bool force: Close the connection instead of releasing it back
                           to the pool
        """
        if self._state.terminal:
            return
        self._set_state(FeedState.CANCELLED)
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            force = True
        if self._resp is not None:
            self._resp.close(force=force)


class ChangesFeed(Feed):
    """Processes ``normal`` and ``longpoll`` changes feed: a single JSON
    object with all the results and ``last_seq`` token."""

    def __init__(self, request, **kwargs):
        super().__init__(request, **kwargs)
        self._events = deque()
        self._last_seq = None
        self._pending = None
        self._fetched = False

    @property
    def last_seq(self):
        """Token of the last emitted event or, once the feed is exhausted,
        the token reported by the server to resume from."""
        return self._last_seq

    @property
    def pending(self):
        return self._pending

    def batch(self):
        """Returns what is left to emit as :class:`ChangesBatch`."""
        return ChangesBatch(list(self._events), self._last_seq, self._pending)

    async def fetch(self):
        """Reads and decodes the whole response.

        :raises: :exc:`~aiosofa.errors.HttpErrorException`
        """
        data = bytearray()
        while True:
            chunk = await self.read_chunk()
            if chunk is None:
                return
            if not chunk:
                break
            data.extend(chunk)

        try:
            body = json.loads(data.decode(self._encoding))
        except ValueError as exc:
            raise self._fail(ChangesDecodeError(bytes(data), cause=exc,
                                                database=self.database))
        if not isinstance(body, Mapping) \
                or not isinstance(body.get('results'), list):
            raise self._fail(Unknown('', 'unexpected changes response',
                                     body=body, database=self.database))
        try:
            self._events.extend(Change.from_wire(item, self.doc_class)
                                for item in body['results'])
        except ValueError as exc:
            raise self._fail(ChangesDecodeError(body['results'], cause=exc,
                                                database=self.database))
        self._last_seq = body.get('last_seq')
        self._pending = body.get('pending')
        self._fetched = True
        self._complete()

    async def next(self):
        """Emits the next event from changes feed.

        :rtype: :class:`Change`
        """
        if self._state is FeedState.IDLE:
            await self.connect()
        if not self._fetched and self._state is FeedState.STREAMING:
            await self.fetch()
        if self._events and self._state is not FeedState.CANCELLED:
            return self._events.popleft()
        return None


class LineChangesFeed(ChangesFeed):
    """Base for feeds which deliver events over newline delimited stream.
    Lines are decoded one by one as they are requested."""

    def __init__(self, request, **kwargs):
        super().__init__(request, **kwargs)
        self._buffer = LineBuffer()
        self._lines = deque()
        self._eof = False

    async def next_line(self):
        """Returns next complete line or ``None`` at the end of the stream."""
        if self._state is FeedState.IDLE:
            await self.connect()
        if self._state is not FeedState.STREAMING:
            return None
        while not self._lines:
            if self._eof:
                return None
            chunk = await self.read_chunk()
            if chunk is None:
                return None
            if not chunk:
                self._eof = True
                tail = self._buffer.flush()
                if tail.strip():
                    self._lines.append(tail)
                continue
            self._lines.extend(self._buffer.feed(chunk))
        return self._lines.popleft()

    def decode(self, line):
        return json.loads(line.decode(self._encoding))


class ContinuousChangesFeed(LineChangesFeed):
    """Processes ``continuous`` changes feed: one JSON object per line, empty
    lines are heartbeats, the final ``last_seq`` object ends the stream.

    A line that fails to decode is kept and retried once together with the
    next line. If they fail to decode together, or a heartbeat arrives in
    between, the kept line is reported with
    :exc:`~aiosofa.errors.ChangesDecodeError`.
    """

    def __init__(self, request, **kwargs):
        super().__init__(request, **kwargs)
        self._partial = b''

    def _decode_error(self, line, cause=None):
        log.warning('malformed changes feed line: %r', line,
                    extra={'database': self.database})
        return self._fail(ChangesDecodeError(line, cause=cause,
                                             database=self.database))

    def _parse(self, line):
        if not self._partial:
            try:
                return self.decode(line)
            except ValueError:
                self._partial = line
                return None

        try:
            event = self.decode(self._partial + b'\n' + line)
        except ValueError as exc:
            raise self._decode_error(self._partial, exc)
        self._partial = b''
        return event

    async def next(self):
        """Emits the next event from changes feed.

        :rtype: :class:`Change`
        """
        while True:
            line = await self.next_line()
            if line is None:
                if self._state is not FeedState.STREAMING:
                    return None
                if self._partial:
                    raise self._decode_error(self._partial)
                self._complete()
                return None
            if not line.strip():
                if self._partial:
                    raise self._decode_error(self._partial)
                continue
            event = self._parse(line)
            if event is None:
                continue
            if not isinstance(event, Mapping):
                raise self._decode_error(line)
            if 'last_seq' in event and 'id' not in event:
                self._last_seq = event['last_seq']
                self._pending = event.get('pending')
                self._complete()
                return None
            try:
                change = Change.from_wire(event, self.doc_class)
            except ValueError as exc:
                raise self._decode_error(line, exc)
            self._last_seq = change.seq
            return change


class EventSourceChangesFeed(LineChangesFeed):
    """Processes ``eventsource`` changes feed following the `EventSource`_
    format with single exception: field ``data`` has to contain a JSON value.
    Event ``id`` is the change sequence token.

    .. _EventSource: http://www.w3.org/TR/eventsource/
    """

    async def next_event(self):
        """Collects lines till the blank one which dispatches the event.

        :rtype: dict
        """
        event, data = {}, []
        while True:
            line = await self.next_line()
            if line is None:
                if not data:
                    return None
                break
            line = line.decode(self._encoding)
            if not line:
                if not data and 'event' not in event:
                    continue
                break
            if line.startswith(':'):
                continue
            field, _, value = line.partition(':')
            if value.startswith(' '):
                value = value[1:]
            if field in ('id', 'event'):
                event[field] = value
            elif field == 'data':
                data.append(value)
            elif field == 'retry' and value.isdigit():
                event[field] = int(value)
        event['data'] = '\n'.join(data)
        return event

    async def next(self):
        """Emits the next event from changes feed.

        :rtype: :class:`Change`
        """
        while True:
            event = await self.next_event()
            if event is None:
                if self._state is FeedState.STREAMING:
                    self._complete()
                return None
            if event.get('event') == 'heartbeat':
                continue
            try:
                data = json.loads(event['data'])
                change = Change.from_wire(data, self.doc_class)
            except ValueError as exc:
                log.warning('malformed changes feed event: %r', event,
                            extra={'database': self.database})
                raise self._fail(ChangesDecodeError(event['data'], cause=exc,
                                                    database=self.database))
            self._last_seq = event.get('id', change.seq)
            return change
