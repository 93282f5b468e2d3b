from datetime import datetime

import pytest

from app import errors
from app.models import EquipmentPermission, PermissionLevel, UserRole
from app.services import permission_ledger


def test_grant_is_insert_or_replace(test_db_session, make_user, make_equipment, admin):
    equipment = make_equipment()
    user = make_user()
    other_admin = make_user("admin2", role=UserRole.ADMIN)

    first = permission_ledger.grant(test_db_session, equipment.id, user.id, admin.id, PermissionLevel.NORMAL)
    second = permission_ledger.grant(test_db_session, equipment.id, user.id, other_admin.id, PermissionLevel.AUTONOMOUS)

    assert first.id == second.id
    assert test_db_session.query(EquipmentPermission).count() == 1
    assert second.level == PermissionLevel.AUTONOMOUS
    assert second.granted_by == other_admin.id
    assert second.granted_by_name == "admin2"


def test_grant_same_level_twice_is_idempotent(test_db_session, make_user, make_equipment, admin):
    equipment = make_equipment()
    user = make_user()
    for _ in range(2):
        permission_ledger.grant(test_db_session, equipment.id, user.id, admin.id, PermissionLevel.NORMAL)
    grants = permission_ledger.list_by_equipment(test_db_session, equipment.id)
    assert len(grants) == 1
    assert grants[0].level == PermissionLevel.NORMAL


def test_grant_unknown_user_or_equipment(test_db_session, make_user, make_equipment, admin):
    equipment = make_equipment()
    with pytest.raises(errors.NotFoundError):
        permission_ledger.grant(test_db_session, equipment.id, 999, admin.id)
    with pytest.raises(errors.NotFoundError):
        permission_ledger.grant(test_db_session, 999, admin.id, admin.id)


def test_has_permission_and_can_manage(test_db_session, make_user, make_equipment, make_grant):
    equipment = make_equipment()
    normal = make_user()
    manager = make_user()
    make_grant(equipment, normal, PermissionLevel.NORMAL)
    make_grant(equipment, manager, PermissionLevel.MANAGER)

    assert permission_ledger.has_permission(test_db_session, equipment.id, normal.id).level == PermissionLevel.NORMAL
    assert permission_ledger.has_permission(test_db_session, equipment.id, 12345) is None
    assert not permission_ledger.can_manage(test_db_session, equipment.id, normal.id)
    assert permission_ledger.can_manage(test_db_session, equipment.id, manager.id)


def test_revoke(test_db_session, make_user, make_equipment, make_grant):
    equipment = make_equipment()
    user = make_user()
    make_grant(equipment, user, PermissionLevel.NORMAL)

    assert permission_ledger.revoke(test_db_session, equipment.id, user.id) is True
    assert permission_ledger.revoke(test_db_session, equipment.id, user.id) is False
    assert permission_ledger.has_permission(test_db_session, equipment.id, user.id) is None


def test_update_level_requires_existing_grant(test_db_session, make_user, make_equipment, make_grant, admin):
    equipment = make_equipment()
    user = make_user()
    with pytest.raises(errors.NotFoundError):
        permission_ledger.update_level(test_db_session, equipment.id, user.id, PermissionLevel.AUTONOMOUS, admin.id)

    make_grant(equipment, user, PermissionLevel.NORMAL)
    updated = permission_ledger.update_level(
        test_db_session, equipment.id, user.id, PermissionLevel.AUTONOMOUS, admin.id
    )
    assert updated.level == PermissionLevel.AUTONOMOUS


def test_update_level_records_granter_like_grant(test_db_session, make_user, make_equipment, make_grant, admin):
    equipment = make_equipment()
    user = make_user()
    original_granter = make_user("first-admin", role=UserRole.ADMIN)
    permission = make_grant(equipment, user, PermissionLevel.NORMAL, granted_by=original_granter)
    permission.granted_at = datetime(2020, 1, 1)
    test_db_session.commit()

    updated = permission_ledger.update_level(
        test_db_session, equipment.id, user.id, PermissionLevel.AUTONOMOUS, admin.id
    )

    assert updated.granted_by == admin.id
    assert updated.granted_by_name == "admin"
    assert updated.granted_at.replace(tzinfo=None) > datetime(2020, 1, 1)


def test_list_by_equipment_orders_managers_first(test_db_session, make_user, make_equipment, make_grant):
    equipment = make_equipment()
    normal, autonomous, manager = make_user(), make_user(), make_user()
    make_grant(equipment, normal, PermissionLevel.NORMAL)
    make_grant(equipment, autonomous, PermissionLevel.AUTONOMOUS)
    make_grant(equipment, manager, PermissionLevel.MANAGER)

    levels = [g.level for g in permission_ledger.list_by_equipment(test_db_session, equipment.id)]
    assert levels == [PermissionLevel.MANAGER, PermissionLevel.AUTONOMOUS, PermissionLevel.NORMAL]


def test_candidates_exclude_granted_and_privileged(test_db_session, make_user, make_equipment, make_grant, admin):
    equipment = make_equipment()
    granted = make_user("granted", role=UserRole.STAFF)
    student = make_user("student", role=UserRole.STUDENT, supervisor="Prof. Lee")
    make_user("mgr", role=UserRole.EQUIPMENT_MANAGER)
    make_grant(equipment, granted, PermissionLevel.NORMAL)

    names = [u.username for u in permission_ledger.list_candidates(test_db_session, equipment.id)]
    assert names == ["student"]


def test_managed_equipment(test_db_session, make_user, make_equipment, make_grant):
    afm = make_equipment("AFM")
    sem = make_equipment("SEM")
    xrd = make_equipment("XRD")
    user = make_user()
    make_grant(sem, user, PermissionLevel.MANAGER)
    make_grant(afm, user, PermissionLevel.MANAGER)
    make_grant(xrd, user, PermissionLevel.AUTONOMOUS)

    assert [e.name for e in permission_ledger.get_managed_equipment(test_db_session, user.id)] == ["AFM", "SEM"]
