# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

"""Request telemetry built on :class:`aiohttp.TraceConfig`. Every request
made by a session reports three kinds of events to the attached handlers:
:data:`REQUEST_START`, then either :data:`REQUEST_STOP` or
:data:`REQUEST_EXCEPTION`::

    def handler(event, measurements, metadata):
        if event == REQUEST_STOP:
            histogram.observe(measurements['duration'],
                              operation=metadata['operation'])

    server = Server(url, trace_configs=[trace_config(handler)])

Handlers are plain callables taking ``(event, measurements, metadata)``.
Metadata always has ``method``, ``path``, ``database``, ``doc_id`` and
``operation`` keys, the last three being ``None`` for requests made without
operation context.
"""

import logging
import time

import aiohttp

__all__ = (
    'EVENTS',
    'REQUEST_EXCEPTION',
    'REQUEST_START',
    'REQUEST_STOP',
    'log_handler',
    'operation_context',
    'trace_config',
)

log = logging.getLogger(__name__)

REQUEST_START = ('aiosofa', 'request', 'start')
REQUEST_STOP = ('aiosofa', 'request', 'stop')
REQUEST_EXCEPTION = ('aiosofa', 'request', 'exception')

#: All events reported by :func:`trace_config`
EVENTS = (REQUEST_START, REQUEST_STOP, REQUEST_EXCEPTION)


def operation_context(operation, *, database=None, doc_id=None):
    """Builds ``trace`` argument for :meth:`HttpSession.request
    <aiosofa.client.HttpSession.request>`.

    :param str operation: Operation name, e.g. ``"changes"``
    :param str database: Database name
    :param str doc_id: Document ID

    :rtype: dict
    """
    return {'operation': operation, 'database': database, 'doc_id': doc_id}


def request_metadata(trace_config_ctx, params):
    context = trace_config_ctx.trace_request_ctx or {}
    return {'method': params.method,
            'path': params.url.path,
            'database': context.get('database'),
            'doc_id': context.get('doc_id'),
            'operation': context.get('operation')}


def trace_config(*handlers):
    """Returns :class:`aiohttp.TraceConfig` which reports request events to
    the given handlers. Durations are measured in seconds with
    :func:`time.monotonic`.

    :rtype: :class:`aiohttp.TraceConfig`
    """
    def emit(event, measurements, metadata):
        for handler in handlers:
            handler(event, measurements, metadata)

    async def on_request_start(session, ctx, params):
        ctx.started = time.monotonic()
        ctx.metadata = request_metadata(ctx, params)
        emit(REQUEST_START,
             {'system_time': time.time(), 'monotonic_time': ctx.started},
             ctx.metadata)

    async def on_request_end(session, ctx, params):
        now = time.monotonic()
        emit(REQUEST_STOP,
             {'duration': now - ctx.started,
              'monotonic_time': now,
              'status': params.response.status},
             ctx.metadata)

    async def on_request_exception(session, ctx, params):
        now = time.monotonic()
        metadata = dict(ctx.metadata,
                        kind=type(params.exception).__name__,
                        reason=params.exception)
        emit(REQUEST_EXCEPTION,
             {'duration': now - ctx.started, 'monotonic_time': now},
             metadata)

    config = aiohttp.TraceConfig()
    config.on_request_start.append(on_request_start)
    config.on_request_end.append(on_request_end)
    config.on_request_exception.append(on_request_exception)
    return config


def log_handler(event, measurements, metadata):
    """Handler which writes request events to ``aiosofa.telemetry`` logger."""
    if event == REQUEST_START:
        log.debug('request started: %s %s (%s)', metadata['method'],
                  metadata['path'], metadata['operation'])
    elif event == REQUEST_STOP:
        log.debug('request completed: %s %s (%s) %s in %.3fs',
                  metadata['method'], metadata['path'],
                  metadata['operation'], measurements['status'],
                  measurements['duration'])
    elif event == REQUEST_EXCEPTION:
        log.error('request failed: %s %s (%s) %s: %s in %.3fs',
                  metadata['method'], metadata['path'],
                  metadata['operation'], metadata['kind'],
                  metadata['reason'], measurements['duration'])
