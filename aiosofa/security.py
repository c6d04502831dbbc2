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

from .errors import returns_result

__all__ = (
    'Security',
    'SecurityObject',
    'SecuritySection',
)


class SecuritySection(namedtuple('SecuritySection', ['names', 'roles'])):
    """Users and roles of a security object section."""

    __slots__ = ()

    def __new__(cls, names=(), roles=()):
        return super().__new__(cls, tuple(names or ()), tuple(roles or ()))

    @classmethod
    def from_wire(cls, data):
        if not isinstance(data, Mapping):
            return cls()
        return cls(data.get('names'), data.get('roles'))

    def to_wire(self):
        return {'names': list(self.names), 'roles': list(self.roles)}

    @property
    def empty(self):
        return not self.names and not self.roles

    def matches(self, name, roles=()):
        return name in self.names or any(role in self.roles for role in roles)

    def add(self, field, value):
        items = getattr(self, field)
        if value in items:
            return self
        return self._replace(**{field: items + (value,)})

    def remove(self, field, value):
        items = getattr(self, field)
        return self._replace(**{field: tuple(i for i in items if i != value)})


class SecurityObject(namedtuple('SecurityObject', ['admins', 'members'])):
    """Database security object. Missing sections are empty.

    >>> SecurityObject.from_wire({}).to_wire()
    {'admins': {'names': [], 'roles': []}, 'members': {'names': [], 'roles': []}}
    """

    __slots__ = ()

    def __new__(cls, admins=None, members=None):
        return super().__new__(cls,
                               admins or SecuritySection(),
                               members or SecuritySection())

    @classmethod
    def from_wire(cls, data):
        data = data if isinstance(data, Mapping) else {}
        return cls(SecuritySection.from_wire(data.get('admins')),
                   SecuritySection.from_wire(data.get('members')))

    def to_wire(self):
        return {'admins': self.admins.to_wire(),
                'members': self.members.to_wire()}

    def is_admin(self, name, roles=()):
        return self.admins.matches(name, roles)

    def is_member(self, name, roles=()):
        """Database without members is public: everyone is a member."""
        if self.members.empty:
            return True
        return self.members.matches(name, roles)


class Security(object):
    """Provides set of methods to work with :ref:`database security API
    <api/db/security>`. Should be used via :attr:`database.security
    <aiosofa.database.Database.security>` property.

    Every modification reads the current security object, changes it and
    writes it back.
    """

    def __init__(self, resource, *, database=None):
        self.resource = resource('_security')
        self.database = database

    @returns_result
    async def get(self, *, auth=None):
        """`Returns database security object`_.

        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: :class:`SecurityObject`

        .. _Returns database security object: http://docs.couchdb.org/en/latest/api/database/security.html#get--db-_security
        """
        resp = await self.resource.get(auth=auth)
        await resp.maybe_raise_error(database=self.database)
        return SecurityObject.from_wire(await resp.json(expect=dict))

    @returns_result
    async def put(self, secobj, *, auth=None):
        """`Updates database security object`_.

        :param secobj: :class:`SecurityObject` or plain mapping
        :param auth: :class:`aiosofa.authn.AuthProvider` instance

        :rtype: dict

        .. _Updates database security object: http://docs.couchdb.org/en/latest/api/database/security.html#put--db-_security
        """
        if isinstance(secobj, SecurityObject):
            secobj = secobj.to_wire()
        resp = await self.resource.put(auth=auth, data=secobj)
        await resp.maybe_raise_error(database=self.database)
        return await resp.json(expect=dict)

    def reset(self, *, auth=None):
        """Replaces security object with the empty one.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        return self.put(SecurityObject(), auth=auth)

    async def _modify(self, section, action, field, value, auth):
        result = await self.get(auth=auth)
        if not result.ok:
            return result
        secobj = result.value
        updated = getattr(getattr(secobj, section), action)(field, value)
        return await self.put(secobj._replace(**{section: updated}),
                              auth=auth)

    def add_admin(self, name, *, auth=None):
        return self._modify('admins', 'add', 'names', name, auth)

    def add_admin_role(self, role, *, auth=None):
        return self._modify('admins', 'add', 'roles', role, auth)

    def add_member(self, name, *, auth=None):
        return self._modify('members', 'add', 'names', name, auth)

    def add_member_role(self, role, *, auth=None):
        return self._modify('members', 'add', 'roles', role, auth)

    def remove_admin(self, name, *, auth=None):
        return self._modify('admins', 'remove', 'names', name, auth)

    def remove_admin_role(self, role, *, auth=None):
        return self._modify('admins', 'remove', 'roles', role, auth)

    def remove_member(self, name, *, auth=None):
        return self._modify('members', 'remove', 'names', name, auth)

    def remove_member_role(self, role, *, auth=None):
        return self._modify('members', 'remove', 'roles', role, auth)

    async def is_admin(self, name, roles=(), *, auth=None):
        """Checks if the user or any of ``roles`` administrates the database.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        result = await self.get(auth=auth)
        return result.map(lambda secobj: secobj.is_admin(name, roles))

    async def is_member(self, name, roles=(), *, auth=None):
        """Checks if the user or any of ``roles`` is a database member.

        :rtype: :class:`~aiosofa.errors.Result`
        """
        result = await self.get(auth=auth)
        return result.map(lambda secobj: secobj.is_member(name, roles))
