"""
Roles, permissions, and three-valued access resolution.

A :class:`.Role` is a named bundle of permission grants. Each grant is either
``True`` (allowed) or ``False`` (forbidden); a permission that a role does not
mention is undefined for that role. A user may hold several roles, and the
roles are evaluated in the order in which they are assigned to the user:

.. code-block:: python

   >>> resolve_access([PRO, Role('banned', {DOWNLOAD_PRO: False})],
   ...                DOWNLOAD_PRO)
   <Access.FORBIDDEN: 'forbidden'>

A later role with an explicit grant overrides an earlier one, but a role that
does not mention a permission never overrides a role that does. Role order
therefore matters, and role collections must never be treated as sets.

The known roles are held in a :class:`.RoleRegistry`, built once when the
application is created (see :class:`clicker.auth.Auth`).
"""

import json
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, NamedTuple, Union

from ..logging import getLogger
from .exceptions import DuplicateRole

logger = getLogger(__name__)


DOWNLOAD_PRO = 'download.pro'
"""Authorizes downloading builds of the pro edition."""

ADMIN_DASHBOARD = 'admin.dashboard'
"""Authorizes access to the administrative dashboard."""


class Access(Enum):
    """Outcome of checking a permission against one or more roles."""

    UNDEFINED = 'undefined'
    """No role said anything about the permission."""

    FORBIDDEN = 'forbidden'
    ALLOWED = 'allowed'


def merge(left: Access, right: Access) -> Access:
    """
    Merge two access verdicts, ``right`` having been evaluated later.

    ``right`` wins whenever it is defined; an undefined ``right`` leaves
    ``left`` in place.
    """
    if right is Access.UNDEFINED:
        return left
    return right


class Role(NamedTuple):
    """A named bundle of permission grants."""

    role_id: str
    """Unique identifier, as stored on the user record."""

    permissions: Mapping[str, bool] = {}
    """Permission name -> grant."""

    def access(self, permission: str) -> Access:
        """Get the verdict of this role alone for ``permission``."""
        if permission not in self.permissions:
            return Access.UNDEFINED
        if self.permissions[permission]:
            return Access.ALLOWED
        return Access.FORBIDDEN


def resolve_access(roles: Iterable[Role], permission: str) -> Access:
    """
    Resolve the access of an ordered collection of roles to ``permission``.

    Parameters
    ----------
    roles : iterable
        :class:`.Role` instances, in the order in which they are assigned.
    permission : str

    Returns
    -------
    :class:`.Access`
        :attr:`Access.UNDEFINED` if ``roles`` is empty or if no role mentions
        the permission.

    """
    result = Access.UNDEFINED
    for role in roles:
        result = merge(result, role.access(permission))
    return result


def is_permitted(roles: Iterable[Role], permission: str) -> bool:
    """Only an explicit, unoverridden grant permits."""
    return resolve_access(roles, permission) is Access.ALLOWED


ADMIN = Role('admin', MappingProxyType({DOWNLOAD_PRO: True,
                                        ADMIN_DASHBOARD: True}))
PRO = Role('pro', MappingProxyType({DOWNLOAD_PRO: True}))

DEFAULT_ROLES = [ADMIN, PRO]


class RoleRegistry(object):
    """
    Immutable, id-keyed collection of the roles known to the application.

    Raises :class:`.DuplicateRole` on construction if two roles share an id;
    this is a configuration error and should stop the application from
    starting.
    """

    def __init__(self, roles: Iterable[Role]) -> None:
        """Register ``roles``."""
        _roles = {}
        for role in roles:
            if role.role_id in _roles:
                raise DuplicateRole(f'Role {role.role_id} is already defined')
            _roles[role.role_id] = Role(role.role_id,
                                        MappingProxyType(dict(role.permissions)))
        self._roles: Mapping[str, Role] = MappingProxyType(_roles)

    def __contains__(self, role_id: object) -> bool:
        return role_id in self._roles

    def __getitem__(self, role_id: str) -> Role:
        return self._roles[role_id]

    def __len__(self) -> int:
        return len(self._roles)

    def resolve(self, role_ids: Iterable[str]) -> List[Role]:
        """
        Resolve stored role identifiers to :class:`.Role` instances.

        Order is preserved. Identifiers that are not registered are dropped,
        and each drop is logged so that drift between stored users and the
        registry can be detected.
        """
        roles = []
        for role_id in role_ids:
            if role_id not in self._roles:
                logger.warning('Dropping unknown role.',
                               extra={'role_id': role_id})
                continue
            roles.append(self._roles[role_id])
        return roles


def parse_roles(value: Union[str, List[Any], None]) -> List[Role]:
    """
    Build roles from configuration.

    ``value`` may be a list of :class:`.Role` or of ``{"role_id": ...,
    "permissions": {...}}`` dicts, or the same list encoded as JSON (e.g. when
    read from the environment). ``None`` or an empty value yields the default
    ``admin`` and ``pro`` roles.
    """
    if not value:
        return list(DEFAULT_ROLES)
    if isinstance(value, str):
        value = json.loads(value)
    return [role if isinstance(role, Role) else Role(**role)
            for role in value]
