"""
Stateless JWT authentication for staff members.

Tokens are issued by :func:`issue_tokens` and carry everything the
permission checks need (role, permissions, hospital) so that requests
never consult a user table.  Logged-out tokens are remembered in the
auth cache (``request.auth_cache``) until they would have expired
anyway.  That cache is kept apart from the memoisation cache so that
clearing or invalidating the latter never revives a revoked token.
"""
from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

from django.utils.functional import cached_property
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTStatelessUserAuthentication
from rest_framework_simplejwt.models import TokenUser
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from hms.caching import now_ms
from hms.permissions import Permission

REVOKED_PREFIX = 'auth:revoked'


class StaffTokenUser(TokenUser):
    """Token user exposing the staff claims added at login."""

    @cached_property
    def role(self) -> str:
        return self.token.get('role', '')

    @cached_property
    def permissions(self) -> frozenset:
        granted = (Permission.coerce(p) for p in self.token.get('permissions', ()))
        return frozenset(p for p in granted if p is not None)

    @cached_property
    def username(self) -> str:
        return self.token.get('username', '')

    @cached_property
    def full_name(self) -> str:
        return self.token.get('full_name', '')

    @cached_property
    def hospital_id(self) -> str:
        return self.token.get('hospital_id', '')


def _add_claims(token, member) -> None:
    token['username'] = member.username
    token['full_name'] = member.full_name
    token['role'] = member.role
    token['permissions'] = sorted(p.value for p in member.permissions)
    token['hospital_id'] = member.hospital_id
    token['hospital_code'] = member.hospital_code


def access_token_for(member) -> AccessToken:
    token = AccessToken.for_user(member)
    _add_claims(token, member)
    return token


def issue_tokens(member) -> tuple[RefreshToken, AccessToken]:
    refresh = RefreshToken.for_user(member)
    return refresh, access_token_for(member)


def token_expiry(token) -> datetime:
    return datetime.fromtimestamp(token['exp'], tz=dt_timezone.utc)


def _revoked_key(token) -> str:
    return f"{REVOKED_PREFIX}:{token['jti']}"


def revoke_token(cache, token) -> None:
    remaining = token['exp'] * 1000 - now_ms()
    if remaining > 0:
        cache.set(_revoked_key(token), True, remaining)


def is_revoked(cache, token) -> bool:
    return cache.peek(_revoked_key(token), False)


class StaffJWTAuthentication(JWTStatelessUserAuthentication):
    """Bearer JWT authentication that also honours logouts."""

    def authenticate(self, request):
        result = super().authenticate(request)
        if result is None:
            return None
        user, token = result
        cache = getattr(request, 'auth_cache', None)
        if cache is not None and is_revoked(cache, token):
            raise AuthenticationFailed('Token has been revoked', code='token_revoked')
        return user, token
