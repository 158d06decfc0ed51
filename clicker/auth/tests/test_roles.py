"""Tests for :mod:`clicker.auth.roles`."""

from unittest import TestCase

from .. import roles
from ..exceptions import DuplicateRole
from ..roles import Access, Role

ALL = [Access.UNDEFINED, Access.FORBIDDEN, Access.ALLOWED]


class TestMerge(TestCase):
    """The later verdict wins unless it is undefined."""

    def test_all_pairs(self):
        """Check every pair of verdicts."""
        for left in ALL:
            for right in ALL:
                expected = left if right is Access.UNDEFINED else right
                self.assertIs(roles.merge(left, right), expected,
                              f'merge({left}, {right})')


class TestResolveAccess(TestCase):
    """Resolving access over an ordered list of roles."""

    def setUp(self):
        self.grant = Role('grant', {'foo': True})
        self.deny = Role('deny', {'foo': False})
        self.silent = Role('silent', {'bar': True})

    def test_no_roles(self):
        """An empty role list yields undefined."""
        self.assertIs(roles.resolve_access([], 'foo'), Access.UNDEFINED)

    def test_single_role(self):
        self.assertIs(self.grant.access('foo'), Access.ALLOWED)
        self.assertIs(self.deny.access('foo'), Access.FORBIDDEN)
        self.assertIs(self.silent.access('foo'), Access.UNDEFINED)

    def test_explicit_deny_after_silence(self):
        """A deny following a role that does not mention it is forbidden."""
        self.assertIs(roles.resolve_access([self.silent, self.deny], 'foo'),
                      Access.FORBIDDEN)

    def test_silence_does_not_override(self):
        """A later role that does not mention the permission changes nothing."""
        self.assertIs(roles.resolve_access([self.grant, self.silent], 'foo'),
                      Access.ALLOWED)
        self.assertIs(roles.resolve_access([self.deny, self.silent], 'foo'),
                      Access.FORBIDDEN)

    def test_order_matters(self):
        """The last defined verdict wins."""
        self.assertIs(roles.resolve_access([self.grant, self.deny], 'foo'),
                      Access.FORBIDDEN)
        self.assertIs(roles.resolve_access([self.deny, self.grant], 'foo'),
                      Access.ALLOWED)

    def test_is_permitted(self):
        self.assertTrue(roles.is_permitted([roles.ADMIN],
                                           roles.ADMIN_DASHBOARD))
        self.assertFalse(roles.is_permitted([roles.PRO],
                                            roles.ADMIN_DASHBOARD))
        self.assertTrue(roles.is_permitted([roles.PRO], roles.DOWNLOAD_PRO))
        self.assertFalse(roles.is_permitted([], roles.DOWNLOAD_PRO))


class TestRoleRegistry(TestCase):
    """The registry is built once and never changes."""

    def test_duplicate(self):
        """Two roles with the same id cannot be registered."""
        with self.assertRaises(DuplicateRole):
            roles.RoleRegistry([roles.ADMIN, Role('admin', {})])

    def test_immutable(self):
        """Neither the registry nor the registered grants can be changed."""
        permissions = {'foo': True}
        registry = roles.RoleRegistry([Role('foo', permissions)])
        permissions['foo'] = False
        self.assertIs(registry['foo'].access('foo'), Access.ALLOWED)
        with self.assertRaises(TypeError):
            registry['foo'].permissions['foo'] = False
        with self.assertRaises(TypeError):
            registry._roles['bar'] = Role('bar', {})

    def test_resolve_keeps_order(self):
        registry = roles.RoleRegistry(roles.DEFAULT_ROLES)
        self.assertEqual(registry.resolve(['pro', 'admin']),
                         [roles.PRO, roles.ADMIN])

    def test_resolve_drops_unknown(self):
        """Unknown role ids are dropped, with a warning."""
        registry = roles.RoleRegistry(roles.DEFAULT_ROLES)
        with self.assertLogs(roles.logger, level='WARNING') as logs:
            resolved = registry.resolve(['ghost', 'pro'])
        self.assertEqual(resolved, [roles.PRO])
        self.assertEqual(len(logs.records), 1)
        self.assertEqual(logs.records[0].role_id, 'ghost')


class TestParseRoles(TestCase):
    def test_default(self):
        self.assertEqual(roles.parse_roles(None), roles.DEFAULT_ROLES)

    def test_json(self):
        parsed = roles.parse_roles(
            '[{"role_id": "beta", "permissions": {"download.pro": true}}]'
        )
        self.assertEqual(parsed, [Role('beta', {'download.pro': True})])
