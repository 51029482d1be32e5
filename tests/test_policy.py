from qr_access.models.enums import Entity, Operation
from qr_access.services.policy import AccessPolicy, Principal
from qr_access.services.role_service import RoleService


def test_self_may_read_own_identity_but_not_others(conn):
    policy = AccessPolicy()
    me = Principal("user-1")

    assert policy.permits(conn, me, Entity.IDENTITY, Operation.READ, "user-1")
    assert not policy.permits(conn, me, Entity.IDENTITY, Operation.READ, "user-2")


def test_admin_may_read_and_update_any_identity(conn, admin):
    policy = AccessPolicy()

    assert policy.permits(conn, admin, Entity.IDENTITY, Operation.READ, "user-2")
    assert policy.permits(conn, admin, Entity.IDENTITY, Operation.UPDATE, "user-2")
    assert policy.permits(conn, admin, Entity.SCAN_EVENT, Operation.READ, None)


def test_only_admins_create_scan_events(conn, admin):
    policy = AccessPolicy()

    assert policy.permits(conn, admin, Entity.SCAN_EVENT, Operation.CREATE)
    assert not policy.permits(conn, Principal("user-1"), Entity.SCAN_EVENT, Operation.CREATE)


def test_nobody_updates_scan_events(conn, admin):
    policy = AccessPolicy()

    assert not policy.permits(conn, admin, Entity.SCAN_EVENT, Operation.UPDATE, "admin-1")
    assert not policy.permits(conn, Principal("user-1"), Entity.SCAN_EVENT, Operation.UPDATE, "user-1")


def test_subscription_updates_are_admin_only(conn, admin):
    policy = AccessPolicy()

    assert policy.permits(conn, admin, Entity.SUBSCRIPTION, Operation.UPDATE, "user-1")
    assert not policy.permits(conn, Principal("user-1"), Entity.SUBSCRIPTION, Operation.UPDATE, "user-1")


def test_pairs_missing_from_the_table_are_denied(conn, admin):
    policy = AccessPolicy(table={})
    assert not policy.permits(conn, admin, Entity.IDENTITY, Operation.READ, "admin-1")


def test_anonymous_callers_are_denied(conn):
    assert not AccessPolicy().permits(conn, None, Entity.IDENTITY, Operation.READ, "user-1")


def test_membership_is_checked_on_every_call(conn):
    policy = AccessPolicy()
    caller = Principal("user-9")

    assert not policy.permits(conn, caller, Entity.SCAN_EVENT, Operation.READ)
    RoleService().grant(conn, "user-9", "Late Admin")
    assert policy.permits(conn, caller, Entity.SCAN_EVENT, Operation.READ)


def test_identity_row_does_not_confer_privilege(conn, ops):
    # editing one's own profile cannot make a caller an admin
    ops.credentials.issue(conn, "admin-ish", "Admin")
    assert not AccessPolicy().permits(conn, Principal("admin-ish"), Entity.SCAN_EVENT, Operation.READ)


def test_identity_and_role_creation_are_self_only(conn, admin):
    policy = AccessPolicy()
    me = Principal("user-1")

    assert policy.permits(conn, me, Entity.IDENTITY, Operation.CREATE, "user-1")
    assert policy.permits(conn, me, Entity.ROLE_MEMBERSHIP, Operation.CREATE, "user-1")
    assert not policy.permits(conn, admin, Entity.IDENTITY, Operation.CREATE, "user-1")
    assert not policy.permits(conn, admin, Entity.ROLE_MEMBERSHIP, Operation.CREATE, "user-1")
    assert policy.permits(conn, admin, Entity.ROLE_MEMBERSHIP, Operation.CREATE, "admin-1")
