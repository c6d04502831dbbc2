# -*- coding: utf-8 -*-
#
# Copyright (C) 2014-2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

"""Authentication providers. A provider is attached to
:class:`~aiosofa.client.HttpSession` as the default one or passed to a single
call with ``auth`` argument, and signs every request it is used for::

    auth = BasicAuthProvider('admin', 'secret')
    server = Server('http://localhost:5984', auth=auth)
"""

import abc
from collections import namedtuple

import aiohttp

from .hdrs import AUTHORIZATION

__all__ = (
    'AuthProvider',
    'BasicAuthCredentials',
    'BasicAuthProvider',
    'NoAuthProvider',
)


#: Username and password pair
BasicAuthCredentials = namedtuple('BasicAuthCredentials',
                                  ['username', 'password'])


class AuthProvider(object, metaclass=abc.ABCMeta):
    """Signs outgoing requests and may learn from the responses."""

    @abc.abstractmethod
    def credentials(self):
        """Returns credentials the provider signs requests with."""
        raise NotImplementedError  # pragma: no cover

    @abc.abstractmethod
    def sign(self, url, headers):
        """Puts authentication data into request ``headers``.

        :param str url: Request URL
        :param dict headers: Request headers, modified in place
        """
        raise NotImplementedError  # pragma: no cover

    def update(self, response):
        """Hook called with every :class:`~aiosofa.client.HttpResponse`
        received for a signed request."""

    def reset(self):
        """Forgets any credentials and cached state."""


class NoAuthProvider(AuthProvider):
    """Leaves requests anonymous."""

    def credentials(self):
        return None

    def sign(self, url, headers):
        pass


class BasicAuthProvider(AuthProvider):
    """HTTP Basic authentication. CouchDB accepts an empty password, but
    the username is required."""

    def __init__(self, name=None, password=None):
        self._credentials = None
        self._header = None
        if name or password:
            self.set_credentials(name, password)

    def __repr__(self):
        name = self._credentials.username if self._credentials else None
        return '<{}.{}(username={!r})>'.format(
            self.__module__, self.__class__.__qualname__, name)

    @classmethod
    def from_userinfo(cls, userinfo):
        """Builds provider from ``user:password`` string, the password may
        contain colons. Returns ``None`` if there is no username.

        :rtype: :class:`BasicAuthProvider`
        """
        name, _, password = (userinfo or '').partition(':')
        if not name:
            return None
        return cls(name, password)

    def credentials(self):
        """:rtype: :class:`BasicAuthCredentials`"""
        return self._credentials

    def set_credentials(self, name, password):
        """Replaces the credential pair.

        :param str name: Username
        :param str password: Password, may be empty
        """
        if not name:
            raise ValueError('Basic Auth username is missing')
        self._credentials = BasicAuthCredentials(name, password or '')
        self._header = None

    def reset(self):
        self._credentials = None
        self._header = None

    def sign(self, url, headers):
        if self._credentials is None:
            raise ValueError('Basic Auth credentials are not set')
        if self._header is None:
            self._header = aiohttp.BasicAuth(
                *self._credentials, encoding='utf-8').encode()
        headers[AUTHORIZATION] = self._header
