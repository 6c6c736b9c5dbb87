# File: seerr_users/permissions.py
"""
Permission bitmask and the escalation guard.

Accounts carry an integer mask of :class:`Permission` bits. ADMIN is a
superset privilege: an account holding it passes every check.
"""
import enum
from typing import Iterable, List, Union


class Permission(enum.IntFlag):
    NONE = 0
    ADMIN = 2
    MANAGE_SETTINGS = 4
    MANAGE_USERS = 8
    MANAGE_REQUESTS = 16
    REQUEST = 32
    VOTE = 64
    AUTO_APPROVE = 128
    AUTO_APPROVE_MOVIE = 256
    AUTO_APPROVE_TV = 512
    REQUEST_4K = 1024
    REQUEST_4K_MOVIE = 2048
    REQUEST_4K_TV = 4096
    REQUEST_ADVANCED = 8192
    REQUEST_VIEW = 16384
    AUTO_APPROVE_4K = 32768
    AUTO_APPROVE_4K_MOVIE = 65536
    AUTO_APPROVE_4K_TV = 131072
    REQUEST_MOVIE = 262144
    REQUEST_TV = 524288
    MANAGE_ISSUES = 1048576
    VIEW_ISSUES = 2097152
    CREATE_ISSUES = 4194304
    AUTO_REQUEST = 8388608
    AUTO_REQUEST_MOVIE = 16777216
    AUTO_REQUEST_TV = 33554432
    RECENT_VIEW = 67108864
    WATCHLIST_VIEW = 134217728
    MANAGE_BLACKLIST = 268435456
    VIEW_BLACKLIST = 1073741824


PermissionArg = Union[int, Permission, Iterable[Union[int, Permission]]]


def _as_list(permissions: PermissionArg) -> List[int]:
    if isinstance(permissions, int):
        return [int(permissions)]
    return [int(p) for p in permissions]


def has_permission(permissions: PermissionArg, value: int, type: str = 'and') -> bool:
    """
    Check ``value`` (an account's mask) against one or more permissions.

    With ``type='and'`` every listed permission must be held, with ``'or'``
    any one of them is enough. ADMIN in ``value`` satisfies everything.
    """
    value = int(value or 0)
    if value & Permission.ADMIN:
        return True

    required = _as_list(permissions)
    if type == 'or':
        return any(value & p for p in required)
    return all(value & p for p in required)


class PermissionGuard:
    """
    Authorization decisions that protect the owner account.

    The owner id is injected so nothing else hard-codes it.
    """

    def __init__(self, owner_account_id: int = 1):
        self.owner_account_id = owner_account_id

    def is_owner(self, actor) -> bool:
        return actor is not None and getattr(actor, 'id', None) == self.owner_account_id

    def can_grant(self, requested_permissions: int, actor) -> bool:
        """Only the owner may hand out ADMIN."""
        if has_permission(Permission.ADMIN, requested_permissions) and not self.is_owner(actor):
            return False
        return True

    def can_modify(self, target_id: int, actor) -> bool:
        """Nobody but the owner may modify the owner."""
        return target_id != self.owner_account_id or self.is_owner(actor)

    def filter_bulk_targets(self, target_ids, actor) -> List[int]:
        """Drop the owner from a bulk target set unless the owner is the one acting."""
        if self.is_owner(actor):
            return list(target_ids)
        return [target_id for target_id in target_ids if target_id != self.owner_account_id]
