import dataclasses
from types import SimpleNamespace

import pytest
from django.core.exceptions import ImproperlyConfigured
from rest_framework.exceptions import NotAuthenticated, PermissionDenied

from hms.permissions import (
    ROLE_PERMISSIONS,
    AccessDecision,
    Actor,
    IsAdminRole,
    Permission,
    RequirePermission,
    RequireRole,
    Role,
    check_access,
    ensure_access,
    has_permission,
    has_role,
    permissions_for_role,
)


def request_as(role=None, **extra):
    if role is None:
        return SimpleNamespace(user=None, path='/api/test')
    user = SimpleNamespace(
        is_authenticated=True, id=extra.get('id', '9'), role=role,
        permissions=permissions_for_role(role), username='tester', hospital_id='hospital-1',
    )
    return SimpleNamespace(user=user, path='/api/test')


def test_every_role_has_a_permission_set():
    assert set(ROLE_PERMISSIONS) == set(Role)
    assert all(ROLE_PERMISSIONS[role] for role in Role)


def test_role_table_is_read_only():
    with pytest.raises(TypeError):
        ROLE_PERMISSIONS[Role.NURSE] = frozenset()


@pytest.mark.parametrize('role,permission,expected', [
    (Role.ADMIN, Permission.MANAGE_USERS, True),
    (Role.ADMIN, Permission.CREATE_MEDICAL_RECORDS, False),
    (Role.DOCTOR, Permission.EDIT_MEDICAL_RECORDS, True),
    (Role.NURSE, Permission.VIEW_PATIENTS, True),
    (Role.NURSE, Permission.CREATE_PATIENTS, False),
    (Role.PHARMACIST, Permission.MANAGE_INVENTORY, True),
    (Role.RECEPTIONIST, Permission.VIEW_INVENTORY, False),
    (Role.RECEPTIONIST, Permission.CANCEL_APPOINTMENTS, True),
])
def test_role_permission_matrix(role, permission, expected):
    actor = Actor.for_role('1', role)
    assert has_permission(actor, permission) is expected


def test_unknown_role_has_no_permissions():
    assert permissions_for_role('janitor') == frozenset()
    assert not has_permission(Actor.for_role('1', 'janitor'), Permission.VIEW_PATIENTS)


def test_permission_coerce_accepts_names_and_values():
    assert Permission.coerce('VIEW_PATIENTS') is Permission.VIEW_PATIENTS
    assert Permission.coerce('view_patients') is Permission.VIEW_PATIENTS
    assert Permission.coerce(Permission.MANAGE_USERS) is Permission.MANAGE_USERS
    assert Permission.coerce('fly') is None
    assert Permission.coerce(42) is None


def test_has_permission_accepts_strings():
    nurse = Actor.for_role('3', Role.NURSE)
    assert has_permission(nurse, 'VIEW_PATIENTS')
    assert not has_permission(nurse, 'not_a_permission')


def test_absent_actor_has_nothing():
    assert not has_permission(None, Permission.VIEW_PATIENTS)
    assert not has_role(None, Role.ADMIN)


def test_has_role_single_and_any_of():
    doctor = Actor.for_role('2', Role.DOCTOR)
    assert has_role(doctor, 'doctor')
    assert not has_role(doctor, Role.ADMIN)
    assert has_role(doctor, [Role.ADMIN, Role.DOCTOR])
    assert not has_role(doctor, [])


def test_check_access_decisions():
    admin = Actor.for_role('1', Role.ADMIN)
    nurse = Actor.for_role('3', Role.NURSE)
    assert check_access(None, permission=Permission.VIEW_PATIENTS) is AccessDecision.UNAUTHENTICATED
    assert check_access(nurse) is AccessDecision.ALLOWED
    assert check_access(nurse, permission=Permission.VIEW_PATIENTS) is AccessDecision.ALLOWED
    assert check_access(nurse, permission=Permission.MANAGE_USERS) is AccessDecision.DENIED
    assert check_access(nurse, role=Role.ADMIN) is AccessDecision.DENIED
    assert check_access(admin, role=Role.ADMIN, permission=Permission.MANAGE_USERS) is AccessDecision.ALLOWED


def test_role_and_permission_are_both_required():
    # right permission, wrong role
    custom = Actor(id='7', role=Role.DOCTOR, permissions=frozenset({Permission.MANAGE_USERS}))
    assert check_access(custom, role=Role.ADMIN, permission=Permission.MANAGE_USERS) is AccessDecision.DENIED
    # right role, permission stripped
    bare_admin = Actor(id='8', role=Role.ADMIN)
    assert check_access(bare_admin, role=Role.ADMIN, permission=Permission.MANAGE_USERS) is AccessDecision.DENIED


def test_actor_is_immutable():
    actor = Actor.for_role('3', Role.NURSE)
    with pytest.raises(dataclasses.FrozenInstanceError):
        actor.role = Role.ADMIN


def test_ensure_access_raises_401_then_403():
    with pytest.raises(NotAuthenticated):
        ensure_access(request_as(None), permission=Permission.VIEW_PATIENTS)
    with pytest.raises(PermissionDenied):
        ensure_access(request_as(Role.NURSE), permission=Permission.MANAGE_USERS)
    actor = ensure_access(request_as(Role.NURSE, id='3'), permission=Permission.VIEW_PATIENTS)
    assert actor.id == '3'
    assert actor.role == Role.NURSE


def test_permission_class_factories():
    can_report = RequirePermission('VIEW_STOCK_REPORTS')()
    assert can_report.has_permission(request_as(Role.PHARMACIST), None)
    assert not can_report.has_permission(request_as(Role.NURSE), None)
    assert not can_report.has_permission(request_as(None), None)

    clinical = RequireRole(Role.DOCTOR, Role.NURSE)()
    assert clinical.has_permission(request_as(Role.NURSE), None)
    assert not clinical.has_permission(request_as(Role.RECEPTIONIST), None)

    assert IsAdminRole().has_permission(request_as(Role.ADMIN), None)
    assert not IsAdminRole().has_permission(request_as(Role.DOCTOR), None)


def test_unknown_permission_is_a_configuration_error():
    with pytest.raises(ImproperlyConfigured):
        RequirePermission('teleport')
