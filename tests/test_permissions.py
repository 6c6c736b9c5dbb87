from types import SimpleNamespace

from seerr_users.permissions import Permission, PermissionGuard, has_permission


def test_admin_satisfies_every_permission():
    assert has_permission(Permission.MANAGE_USERS, Permission.ADMIN)
    assert has_permission([Permission.MANAGE_USERS, Permission.MANAGE_REQUESTS], Permission.ADMIN)


def test_and_requires_every_bit():
    value = Permission.MANAGE_USERS | Permission.REQUEST
    assert has_permission([Permission.MANAGE_USERS, Permission.REQUEST], value)
    assert not has_permission([Permission.MANAGE_USERS, Permission.MANAGE_REQUESTS], value)


def test_or_requires_any_bit():
    value = int(Permission.WATCHLIST_VIEW)
    assert has_permission([Permission.MANAGE_REQUESTS, Permission.WATCHLIST_VIEW], value, type='or')
    assert not has_permission([Permission.MANAGE_REQUESTS, Permission.REQUEST_VIEW], value, type='or')


def test_no_permissions():
    assert not has_permission(Permission.REQUEST, 0)
    assert not has_permission(Permission.REQUEST, None)


def test_only_owner_may_grant_admin():
    guard = PermissionGuard(owner_account_id=1)
    owner = SimpleNamespace(id=1)
    manager = SimpleNamespace(id=5)

    assert guard.can_grant(int(Permission.ADMIN), owner)
    assert not guard.can_grant(int(Permission.ADMIN | Permission.REQUEST), manager)
    assert guard.can_grant(int(Permission.MANAGE_USERS), manager)


def test_nobody_but_owner_modifies_owner():
    guard = PermissionGuard(owner_account_id=1)
    assert guard.can_modify(1, SimpleNamespace(id=1))
    assert not guard.can_modify(1, SimpleNamespace(id=2))
    assert guard.can_modify(3, SimpleNamespace(id=2))


def test_bulk_targets_drop_owner_for_other_actors():
    guard = PermissionGuard(owner_account_id=1)
    assert guard.filter_bulk_targets([1, 2, 3], SimpleNamespace(id=2)) == [2, 3]
    assert guard.filter_bulk_targets([1, 2, 3], SimpleNamespace(id=1)) == [1, 2, 3]


def test_owner_id_is_injected():
    guard = PermissionGuard(owner_account_id=7)
    assert guard.is_owner(SimpleNamespace(id=7))
    assert not guard.is_owner(SimpleNamespace(id=1))
    assert not guard.is_owner(None)
