from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings
from django.utils import timezone
from django.utils.crypto import constant_time_compare
from rest_framework.exceptions import ValidationError

from hms import fixtures
from hms.exceptions import Conflict
from hms.permissions import permissions_for_role

RESET_PREFIX = 'auth:reset'


@dataclass
class StaffMember:
    id: str
    username: str
    full_name: str
    email: str
    role: str
    department: str
    password: str
    hospital_id: str = fixtures.HOSPITAL["id"]
    hospital_name: str = fixtures.HOSPITAL["name"]
    hospital_code: str = fixtures.HOSPITAL["code"]
    is_active: bool = True
    created_at: str = field(default_factory=lambda: timezone.now().isoformat())
    last_login: Optional[str] = None

    @property
    def permissions(self) -> frozenset:
        return permissions_for_role(self.role)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'username': self.username,
            'full_name': self.full_name,
            'email': self.email,
            'role': self.role,
            'department': self.department,
            'hospital_id': self.hospital_id,
            'hospital_name': self.hospital_name,
            'hospital_code': self.hospital_code,
            'permissions': sorted(p.value for p in self.permissions),
            'is_active': self.is_active,
            'created_at': self.created_at,
            'last_login': self.last_login,
        }


def seed_staff() -> list[StaffMember]:
    password = settings.HMS_DEMO_PASSWORD
    return [
        StaffMember(id=ident, username=username, full_name=name, email=email,
                    role=role, department=department, password=password)
        for ident, username, name, email, role, department in fixtures.STAFF
    ]


def find_by_username(store, username: str) -> Optional[StaffMember]:
    with store.lock:
        return next((m for m in store.staff.values() if m.username == username), None)


def authenticate_staff(store, username: str, password: str, hospital_code: str) -> Optional[StaffMember]:
    """Return the active member matching the credentials, else ``None``."""
    member = find_by_username(store, username)
    if member is None or not member.is_active:
        return None
    if not constant_time_compare(member.password, password):
        return None
    if member.hospital_code != hospital_code:
        return None
    member.last_login = timezone.now().isoformat()
    return member


def create_staff(store, *, username, full_name, email, role, department, password) -> StaffMember:
    if not permissions_for_role(role):
        raise ValidationError({'role': ['unknown role']})
    with store.lock:
        if find_by_username(store, username):
            raise Conflict('username already taken')
        member = StaffMember(
            id=str(max((int(k) for k in store.staff), default=0) + 1),
            username=username, full_name=full_name, email=email,
            role=role, department=department, password=password,
        )
        store.staff[member.id] = member
    return member


def find_by_email(store, email: str) -> Optional[StaffMember]:
    email = email.lower()
    with store.lock:
        return next((m for m in store.staff.values() if m.email.lower() == email), None)


def _reset_key(token: str) -> str:
    return f'{RESET_PREFIX}:{token}'


def start_password_reset(store, cache, email: str) -> Optional[tuple[StaffMember, str]]:
    """Issue a single-use reset token for the active member owning ``email``.

    Returns ``None`` when no such member exists; callers must answer the
    same way in both cases.
    """
    member = find_by_email(store, email)
    if member is None or not member.is_active:
        return None
    token = secrets.token_urlsafe(32)
    cache.set(_reset_key(token), member.id, settings.HMS_PASSWORD_RESET_TTL_MS)
    return member, token


def finish_password_reset(store, cache, token: str, new_password: str) -> StaffMember:
    key = _reset_key(token)
    member_id = cache.peek(key)
    cache.delete(key)
    with store.lock:
        member = store.staff.get(member_id) if member_id else None
        if member is None or not member.is_active:
            raise ValidationError({'token': ['invalid or expired reset token']})
        member.password = new_password
    return member
