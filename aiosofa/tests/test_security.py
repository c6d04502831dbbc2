# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import aiosofa.errors
from aiosofa.security import SecurityObject, SecuritySection

from . import utils


class SecurityObjectTestCase(utils.TestCase):

    def test_empty_object(self):
        secobj = SecurityObject.from_wire({})
        self.assertTrue(secobj.admins.empty)
        self.assertTrue(secobj.members.empty)

    def test_from_wire(self):
        secobj = SecurityObject.from_wire({
            'admins': {'names': ['root'], 'roles': ['ops']},
            'members': {'roles': ['staff']}
        })
        self.assertEqual(('root',), secobj.admins.names)
        self.assertEqual(('ops',), secobj.admins.roles)
        self.assertEqual((), secobj.members.names)
        self.assertEqual(('staff',), secobj.members.roles)

    def test_is_admin(self):
        secobj = SecurityObject(SecuritySection(['root'], ['ops']))
        self.assertTrue(secobj.is_admin('root'))
        self.assertTrue(secobj.is_admin('bob', ['ops']))
        self.assertFalse(secobj.is_admin('bob', ['staff']))

    def test_public_database(self):
        self.assertTrue(SecurityObject().is_member('anyone'))

    def test_is_member(self):
        secobj = SecurityObject(members=SecuritySection(['bob'], ['staff']))
        self.assertTrue(secobj.is_member('bob'))
        self.assertTrue(secobj.is_member('alice', ['staff']))
        self.assertFalse(secobj.is_member('alice'))

    def test_section_add_remove(self):
        section = SecuritySection(['a'])
        self.assertEqual(('a', 'b'), section.add('names', 'b').names)
        self.assertIs(section, section.add('names', 'a'))
        self.assertEqual((), section.remove('names', 'a').names)


class SecurityTestCase(utils.DatabaseTestCase):

    async def test_get(self):
        with self.response(data=b'{"admins": {"names": ["root"]}}'):
            result = await self.db.security.get()
            self.assert_request_called_with('GET', self.dbname, '_security')
        self.assertEqual(('root',), result.value.admins.names)
        self.assertTrue(result.value.members.empty)

    async def test_get_empty(self):
        with self.response(data=b'{}'):
            result = await self.db.security.get()
        self.assertEqual(SecurityObject(), result.value)

    async def test_put(self):
        with self.response(data=b'{"ok": true}'):
            secobj = SecurityObject(members=SecuritySection(['bob']))
            await self.db.security.put(secobj)
            self.assert_request_called_with('PUT', self.dbname, '_security',
                                            data=...)
            self.assert_request_json({
                'admins': {'names': [], 'roles': []},
                'members': {'names': ['bob'], 'roles': []}})

    async def test_reset(self):
        with self.response(data=b'{"ok": true}'):
            await self.db.security.reset()
            self.assert_request_json({
                'admins': {'names': [], 'roles': []},
                'members': {'names': [], 'roles': []}})

    async def test_add_member(self):
        current = self.json_response({'members': {'names': ['alice']}})
        with self.responses(current, self.json_response({'ok': True})):
            result = await self.db.security.add_member('bob')
            self.assert_request_called_with('PUT', self.dbname, '_security',
                                            data=...)
            self.assert_request_json({
                'admins': {'names': [], 'roles': []},
                'members': {'names': ['alice', 'bob'], 'roles': []}})
        self.assertTrue(result.ok)

    async def test_add_admin_role(self):
        current = self.json_response({})
        with self.responses(current, self.json_response({'ok': True})):
            await self.db.security.add_admin_role('ops')
            self.assert_request_json({
                'admins': {'names': [], 'roles': ['ops']},
                'members': {'names': [], 'roles': []}})

    async def test_remove_member_role(self):
        current = self.json_response({'members': {'roles': ['a', 'b']}})
        with self.responses(current, self.json_response({'ok': True})):
            await self.db.security.remove_member_role('a')
            self.assert_request_json({
                'admins': {'names': [], 'roles': []},
                'members': {'names': [], 'roles': ['b']}})

    async def test_modify_read_failure(self):
        with self.response(status=401):
            result = await self.db.security.add_admin('root')
        self.assertIsInstance(result.error, aiosofa.errors.Unauthorized)
        self.assertEqual(1, self.request.call_count)

    async def test_is_admin(self):
        with self.response(data=b'{"admins": {"roles": ["ops"]}}'):
            result = await self.db.security.is_admin('bob', ['ops'])
        self.assertTrue(result.value)

    async def test_is_member_public(self):
        with self.response(data=b'{}'):
            result = await self.db.security.is_member('anyone')
        self.assertTrue(result.value)
