"""
Role and permission based access control.

Permissions and roles are closed enumerations; the role → permission
table below is static configuration.  :func:`check_access` is the single
decision point shared by the DRF permission classes and by handlers
that guard individual HTTP methods.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from django.core.exceptions import ImproperlyConfigured
from django.db import models
from rest_framework.exceptions import NotAuthenticated, PermissionDenied
from rest_framework.permissions import BasePermission

audit_logger = logging.getLogger("hms.audit")


class Permission(models.TextChoices):
    VIEW_PATIENTS = "view_patients", "View patients"
    CREATE_PATIENTS = "create_patients", "Create patients"
    EDIT_PATIENTS = "edit_patients", "Edit patients"
    DELETE_PATIENTS = "delete_patients", "Delete patients"
    VIEW_APPOINTMENTS = "view_appointments", "View appointments"
    CREATE_APPOINTMENTS = "create_appointments", "Create appointments"
    EDIT_APPOINTMENTS = "edit_appointments", "Edit appointments"
    CANCEL_APPOINTMENTS = "cancel_appointments", "Cancel appointments"
    VIEW_MEDICAL_RECORDS = "view_medical_records", "View medical records"
    CREATE_MEDICAL_RECORDS = "create_medical_records", "Create medical records"
    EDIT_MEDICAL_RECORDS = "edit_medical_records", "Edit medical records"
    VIEW_INVENTORY = "view_inventory", "View inventory"
    MANAGE_INVENTORY = "manage_inventory", "Manage inventory"
    VIEW_STOCK_REPORTS = "view_stock_reports", "View stock reports"
    MANAGE_USERS = "manage_users", "Manage users"
    VIEW_AUDIT_LOGS = "view_audit_logs", "View audit logs"
    MANAGE_HOSPITAL_SETTINGS = "manage_hospital_settings", "Manage hospital settings"
    SYNC_NATIONAL_DB = "sync_national_db", "Sync national database"
    VIEW_REFERRALS = "view_referrals", "View referrals"
    CREATE_REFERRALS = "create_referrals", "Create referrals"

    @classmethod
    def coerce(cls, name: object) -> Optional["Permission"]:
        """Accept a member, its name (``VIEW_PATIENTS``) or value (``view_patients``)."""
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            return None
        if name in cls.values:
            return cls(name)
        return cls.__members__.get(name)


class Role(models.TextChoices):
    ADMIN = "admin", "Administrator"
    DOCTOR = "doctor", "Doctor"
    NURSE = "nurse", "Nurse"
    PHARMACIST = "pharmacist", "Pharmacist"
    RECEPTIONIST = "receptionist", "Receptionist"


P = Permission

ROLE_PERMISSIONS: Mapping[Role, frozenset] = MappingProxyType({
    Role.ADMIN: frozenset({
        P.VIEW_PATIENTS, P.CREATE_PATIENTS, P.EDIT_PATIENTS,
        P.VIEW_APPOINTMENTS, P.CREATE_APPOINTMENTS, P.EDIT_APPOINTMENTS, P.CANCEL_APPOINTMENTS,
        P.VIEW_MEDICAL_RECORDS,
        P.VIEW_INVENTORY, P.MANAGE_INVENTORY, P.VIEW_STOCK_REPORTS,
        P.MANAGE_USERS, P.VIEW_AUDIT_LOGS, P.MANAGE_HOSPITAL_SETTINGS,
        P.SYNC_NATIONAL_DB, P.VIEW_REFERRALS, P.CREATE_REFERRALS,
    }),
    Role.DOCTOR: frozenset({
        P.VIEW_PATIENTS, P.CREATE_PATIENTS, P.EDIT_PATIENTS,
        P.VIEW_APPOINTMENTS, P.CREATE_APPOINTMENTS, P.EDIT_APPOINTMENTS,
        P.VIEW_MEDICAL_RECORDS, P.CREATE_MEDICAL_RECORDS, P.EDIT_MEDICAL_RECORDS,
        P.VIEW_INVENTORY, P.VIEW_REFERRALS, P.CREATE_REFERRALS,
    }),
    Role.NURSE: frozenset({
        P.VIEW_PATIENTS,
        P.VIEW_APPOINTMENTS, P.CREATE_APPOINTMENTS, P.EDIT_APPOINTMENTS,
        P.VIEW_MEDICAL_RECORDS, P.CREATE_MEDICAL_RECORDS,
        P.VIEW_INVENTORY, P.VIEW_REFERRALS,
    }),
    Role.PHARMACIST: frozenset({
        P.VIEW_PATIENTS, P.VIEW_APPOINTMENTS, P.VIEW_MEDICAL_RECORDS,
        P.VIEW_INVENTORY, P.MANAGE_INVENTORY, P.VIEW_STOCK_REPORTS,
    }),
    Role.RECEPTIONIST: frozenset({
        P.VIEW_PATIENTS, P.CREATE_PATIENTS, P.EDIT_PATIENTS,
        P.VIEW_APPOINTMENTS, P.CREATE_APPOINTMENTS, P.EDIT_APPOINTMENTS, P.CANCEL_APPOINTMENTS,
    }),
})

_unmapped = set(Role) - set(ROLE_PERMISSIONS)
if _unmapped:
    raise ImproperlyConfigured(f"roles without a permission set: {sorted(_unmapped)}")


def permissions_for_role(role: str) -> frozenset:
    if role not in Role.values:
        return frozenset()
    return ROLE_PERMISSIONS[Role(role)]


@dataclass(frozen=True)
class Actor:
    """An authenticated staff member as seen by the access checks."""
    id: str
    role: str
    permissions: frozenset = field(default_factory=frozenset)
    username: str = ""
    hospital_id: str = ""

    @classmethod
    def for_role(cls, id: str, role: str, **extra) -> "Actor":
        return cls(id=id, role=role, permissions=permissions_for_role(role), **extra)

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(
            id=str(getattr(user, "id", "")),
            role=getattr(user, "role", ""),
            permissions=frozenset(getattr(user, "permissions", ())),
            username=getattr(user, "username", ""),
            hospital_id=getattr(user, "hospital_id", ""),
        )


def actor_for_request(request) -> Optional[Actor]:
    """Return the Actor behind an authenticated request, else ``None``."""
    user = getattr(request, "user", None)
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return Actor.from_user(user)


def has_permission(actor: Optional[Actor], permission: Union[Permission, str]) -> bool:
    if actor is None:
        return False
    wanted = Permission.coerce(permission)
    return wanted is not None and wanted in actor.permissions


def has_role(actor: Optional[Actor], required: Union[str, Iterable[str]]) -> bool:
    if actor is None:
        return False
    if isinstance(required, str):
        return actor.role == required
    return actor.role in set(required)


class AccessDecision(enum.Enum):
    ALLOWED = "allowed"
    UNAUTHENTICATED = "unauthenticated"
    DENIED = "denied"


def check_access(actor: Optional[Actor], role=None, permission=None) -> AccessDecision:
    if actor is None:
        return AccessDecision.UNAUTHENTICATED
    if role is not None and not has_role(actor, role):
        return AccessDecision.DENIED
    if permission is not None and not has_permission(actor, permission):
        return AccessDecision.DENIED
    return AccessDecision.ALLOWED


def ensure_access(request, role=None, permission=None) -> Actor:
    """Raise the matching DRF error unless the request may proceed."""
    actor = actor_for_request(request)
    decision = check_access(actor, role=role, permission=permission)
    if decision is AccessDecision.UNAUTHENTICATED:
        raise NotAuthenticated()
    if decision is AccessDecision.DENIED:
        audit_logger.warning(
            "access denied: actor=%s role=%s required_role=%s required_permission=%s path=%s",
            actor.id, actor.role, role, permission, getattr(request, "path", ""),
        )
        raise PermissionDenied("Insufficient permissions")
    return actor


class GatePermission(BasePermission):
    """DRF permission class backed by :func:`check_access`."""
    required_role = None
    required_permission = None
    message = "Insufficient permissions"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        actor = actor_for_request(request)
        decision = check_access(actor, role=self.required_role, permission=self.required_permission)
        if decision is AccessDecision.DENIED:
            audit_logger.warning(
                "access denied: actor=%s role=%s required_role=%s required_permission=%s path=%s",
                actor.id, actor.role, self.required_role, self.required_permission, request.path,
            )
        return decision is AccessDecision.ALLOWED


def RequirePermission(permission: Union[Permission, str]) -> type:
    """Build a permission class requiring ``permission``."""
    wanted = Permission.coerce(permission)
    if wanted is None:
        raise ImproperlyConfigured(f"unknown permission: {permission!r}")
    return type(f"Require_{wanted.name}", (GatePermission,), {"required_permission": wanted})


def RequireRole(*roles: str) -> type:
    """Build a permission class requiring one of ``roles``."""
    required = roles[0] if len(roles) == 1 else tuple(roles)
    return type(f"RequireRole_{'_'.join(roles)}", (GatePermission,), {"required_role": required})


IsAdminRole = RequireRole(Role.ADMIN)
