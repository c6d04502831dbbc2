# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

from .database import Database
from .errors import returns_result

__all__ = (
    'Replication',
)


#: Replication options accepted by ``/_replicate`` and ``_replicator`` docs
REPLICATION_OPTIONS = frozenset({
    'cancel',
    'checkpoint_interval',
    'connection_timeout',
    'continuous',
    'create_target',
    'doc_ids',
    'filter',
    'http_connections',
    'query_params',
    'retries_per_request',
    'selector',
    'since_seq',
    'source_proxy',
    'target_proxy',
    'use_checkpoints',
    'worker_batch_size',
    'worker_processes',
})


def replication_doc(source, target, options):
    doc = {'source': source, 'target': target}
    for key, value in options.items():
        if key not in REPLICATION_OPTIONS:
            raise TypeError('unknown replication option {!r}'.format(key))
        if value is not None:
            doc[key] = value
    return doc


class Replication(object):
    """Manages replications with ``/_replicate``, the ``_replicator``
    database and the ``/_scheduler`` API. Should be used via
    :attr:`server.replication <aiosofa.server.Server.replication>` property.
    """

    database_class = Database

    def __init__(self, resource):
        self.resource = resource
        self.replicator = self.database_class(resource('_replicator'),
                                              dbname='_replicator')

    @returns_result
    async def replicate(self, source, target, *, auth=None, **options):
        """:ref:`Runs a replication <api/server/replicate>` from ``source``
        to ``target``.

        :param str source: Source database name or URL
        :param str target: Target database name or URL

        :param auth: :class:`aiosofa.authn.AuthProvider` instance
        :param options: Replication options: ``continuous``,
                        ``create_target``, ``doc_ids``, ``filter``,
                        ``query_params``, ``selector`` etc.

        :rtype: dict
        """
        doc = replication_doc(source, target, options)
        resp = await self.resource.post('_replicate', auth=auth, data=doc)
        await resp.maybe_raise_error()
        return await resp.json(expect=dict)

    @returns_result
    async def cancel(self, replication_id, *, auth=None):
        """Cancels a replication started with :meth:`replicate`.

        :rtype: dict
        """
        resp = await self.resource.post('_replicate', auth=auth,
                                        data={'replication_id': replication_id,
                                              'cancel': True})
        await resp.maybe_raise_error()
        return await resp.json(expect=dict)

    def create_doc(self, replication_id, source, target, *, auth=None,
                   **options):
        """Creates a persistent replication document in ``_replicator``
        database.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        doc = replication_doc(source, target, options)
        return self.replicator[replication_id].update(doc, auth=auth)

    def get_doc(self, replication_id, *, auth=None):
        """Returns the replication document, which carries replication
        state fields.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        return self.replicator[replication_id].get(auth=auth)

    #: alias for :meth:`get_doc`
    status = get_doc

    def delete_doc(self, replication_id, rev, *, auth=None):
        """Deletes the replication document and so cancels the replication.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        return self.replicator[replication_id].remove(rev, auth=auth)

    @returns_result
    async def list(self, *, auth=None):
        """Returns all the replication documents.

        :rtype: list
        """
        result = (await self.replicator.all_docs(auth=auth,
                                                 include_docs=True)).unwrap()
        return [doc for doc in result.docs()
                if not doc.id.startswith('_design/')]

    @returns_result
    async def jobs(self, *, auth=None, limit=None, skip=None):
        """Returns running replication jobs from the scheduler.

        :rtype: dict
        """
        resp = await self.resource('_scheduler', 'jobs').get(
            auth=auth, params={'limit': limit, 'skip': skip})
        await resp.maybe_raise_error()
        return await resp.json(expect=dict)

    @returns_result
    async def docs(self, database=None, *, auth=None, limit=None, skip=None,
                   states=None):
        """Returns replication documents states from the scheduler.

        :param str database: Replicator database name. All of them if omitted
        :param list states: Filters documents by states

        :rtype: dict
        """
        path = ['_scheduler', 'docs']
        if database is not None:
            path.append(database)
        params = {'limit': limit, 'skip': skip}
        if states:
            params['states'] = ','.join(states)
        resp = await self.resource(*path).get(auth=auth, params=params)
        await resp.maybe_raise_error(database=database)
        return await resp.json(expect=dict)

    @returns_result
    async def doc_info(self, database, replication_id, *, auth=None):
        """Returns scheduler state of single replication document.

        :rtype: dict
        """
        resource = self.resource('_scheduler', 'docs', database, replication_id)
        resp = await resource.get(auth=auth)
        await resp.maybe_raise_error(doc_id=replication_id, database=database)
        return await resp.json(expect=dict)
