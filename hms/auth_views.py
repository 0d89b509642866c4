"""
Authentication endpoints.

Login exchanges staff credentials for a JWT pair; refresh trades a
refresh token for a new access token; validate echoes the session of
the presented access token; logout revokes the presented tokens;
password-reset mails a one-hour reset link (POST) and sets a new
password from that link (PUT).
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from hms.authentication import access_token_for, issue_tokens, is_revoked, revoke_token, token_expiry
from hms.permissions import actor_for_request
from hms.serializers.auth import (
    LoginSerializer,
    LogoutSerializer,
    PasswordResetConfirmSerializer,
    PasswordResetRequestSerializer,
    RefreshSerializer,
)
from hms.services.audit import log_action
from hms.services.staff import authenticate_staff, finish_password_reset, start_password_reset

logger = logging.getLogger(__name__)


def _client_ip(request) -> str:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    return forwarded.split(',')[0].strip() or request.META.get('REMOTE_ADDR', 'unknown')


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    store = request.records

    member = authenticate_staff(store, vd['username'], vd['password'], vd['hospitalCode'])
    if member is None:
        log_action(store, actor=None, action='AUTH_FAILED', object_type='staff',
                   detail={'username': vd['username'], 'ip': _client_ip(request)})
        raise AuthenticationFailed('Invalid credentials')

    refresh, access = issue_tokens(member)
    log_action(store, actor=None, action='AUTH_SUCCESS', object_type='staff', object_id=member.id,
               detail={'username': member.username, 'ip': _client_ip(request)})
    return Response({
        'ok': True,
        'data': {
            'user': member.to_dict(),
            'accessToken': str(access),
            'refreshToken': str(refresh),
            'expiresAt': token_expiry(access).isoformat(),
        },
    })

# ScopedRateThrottle reads throttle_scope from the view instance
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_view(request):
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    store = request.records
    try:
        refresh = RefreshToken(s.validated_data['refreshToken'])
    except TokenError as e:
        log_action(store, actor=None, action='REFRESH_FAILED', object_type='token', detail={'reason': str(e)})
        raise AuthenticationFailed('Invalid refresh token')
    if is_revoked(request.auth_cache, refresh):
        raise AuthenticationFailed('Refresh token has been revoked')

    with store.lock:
        member = store.staff.get(str(refresh['user_id']))
    if member is None or not member.is_active:
        log_action(store, actor=None, action='REFRESH_FAILED', object_type='staff',
                   object_id=str(refresh['user_id']), detail={'reason': 'unknown or inactive user'})
        raise AuthenticationFailed('User not found')

    access = access_token_for(member)
    log_action(store, actor=None, action='TOKEN_REFRESHED', object_type='staff', object_id=member.id)
    return Response({'ok': True, 'data': {'accessToken': str(access), 'expiresAt': token_expiry(access).isoformat()}})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def validate_view(request):
    user = request.user
    return Response({
        'ok': True,
        'data': {
            'user': {
                'id': str(user.id),
                'username': user.username,
                'full_name': user.full_name,
                'role': user.role,
                'hospital_id': user.hospital_id,
                'permissions': sorted(p.value for p in user.permissions),
            },
            'expiresAt': token_expiry(request.auth).isoformat(),
        },
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Revoke the current access token and, if given, its refresh token."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    cache = request.auth_cache
    revoke_token(cache, request.auth)
    revoked = 1
    raw_refresh = s.validated_data.get('refreshToken')
    if raw_refresh:
        try:
            revoke_token(cache, RefreshToken(raw_refresh))
            revoked += 1
        except TokenError as e:
            logger.info('logout ignored an invalid refresh token: %s', e)
    log_action(request.records, actor=actor_for_request(request), action='LOGOUT', object_type='staff',
               object_id=str(request.user.id))
    return Response({'ok': True, 'revoked': revoked})


RESET_REQUESTED_MESSAGE = 'If this address belongs to a staff account, a reset link has been sent.'


@api_view(['POST', 'PUT'])
@permission_classes([AllowAny])
def password_reset_view(request):
    store = request.records
    cache = request.auth_cache
    if request.method == 'POST':
        s = PasswordResetRequestSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        email = s.validated_data['email']
        issued = start_password_reset(store, cache, email)
        if issued is None:
            log_action(store, actor=None, action='PASSWORD_RESET_ATTEMPTED', object_type='staff',
                       detail={'email': email, 'ip': _client_ip(request)})
        else:
            member, token = issued
            link = settings.HMS_PASSWORD_RESET_URL.format(token=token)
            send_mail('Password reset', f'Use this link within one hour to choose a new password: {link}',
                      None, [member.email])
            log_action(store, actor=None, action='PASSWORD_RESET_REQUESTED', object_type='staff',
                       object_id=member.id, detail={'ip': _client_ip(request)})
        return Response({'ok': True, 'message': RESET_REQUESTED_MESSAGE})

    s = PasswordResetConfirmSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        member = finish_password_reset(store, cache, s.validated_data['token'], s.validated_data['newPassword'])
    except ValidationError:
        log_action(store, actor=None, action='PASSWORD_RESET_FAILED', object_type='token',
                   detail={'reason': 'invalid token', 'ip': _client_ip(request)})
        raise
    log_action(store, actor=None, action='PASSWORD_RESET_SUCCESS', object_type='staff', object_id=member.id,
               detail={'ip': _client_ip(request)})
    return Response({'ok': True, 'message': 'Password has been reset.'})

password_reset_view.cls.throttle_scope = 'password_reset'
