"""
Administration endpoints: staff accounts, the role matrix, the audit
trail and the memory cache.

Staff management and cache control are restricted to the ``admin``
role *and* the matching permission, so a custom role that is granted
``MANAGE_USERS`` alone still cannot reach them.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.permissions import ROLE_PERMISSIONS, Permission, RequirePermission, Role, actor_for_request, ensure_access
from hms.serializers.admin import CacheActionSerializer, StaffCreateSerializer
from hms.services.audit import log_action, recent_events
from hms.services.notify import invalidate
from hms.services.staff import create_staff


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def staff_users(request):
    actor = ensure_access(request, role=Role.ADMIN, permission=Permission.MANAGE_USERS)
    store = request.records
    if request.method == 'GET':
        with store.lock:
            members = sorted(store.staff.values(), key=lambda m: int(m.id))
        return Response({'ok': True, 'data': [m.to_dict() for m in members]})

    s = StaffCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    member = create_staff(store, **s.validated_data)
    log_action(store, actor=actor, action='USER_CREATED', object_type='staff', object_id=member.id,
               detail={'role': member.role})
    return Response({'ok': True, 'data': member.to_dict()}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, RequirePermission(Permission.MANAGE_USERS)])
def roles(request):
    store = request.records
    with store.lock:
        counts = {}
        for member in store.staff.values():
            counts[member.role] = counts.get(member.role, 0) + 1
    data = [
        {
            'id': role.value,
            'name': role.label,
            'permissions': sorted(p.value for p in ROLE_PERMISSIONS[role]),
            'user_count': counts.get(role.value, 0),
        }
        for role in Role
    ]
    return Response({'ok': True, 'data': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, RequirePermission(Permission.VIEW_AUDIT_LOGS)])
def audit_logs(request):
    action = request.query_params.get('action') or None
    try:
        limit = min(int(request.query_params.get('limit', 100)), 1000)
    except ValueError:
        limit = 100
    return Response({'ok': True, 'data': recent_events(request.records, action=action, limit=limit)})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def cache_admin(request):
    """Inspect the memory cache or run a maintenance action on it."""
    ensure_access(request, role=Role.ADMIN, permission=Permission.MANAGE_HOSPITAL_SETTINGS)
    cache = request.memory_cache
    if request.method == 'GET':
        return Response({'ok': True, 'data': {**cache.stats(), 'keys': sorted(cache.keys())}})

    s = CacheActionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    action = s.validated_data['action']
    if action == 'invalidate':
        removed = invalidate(cache, s.validated_data['pattern'])
    elif action == 'cleanup':
        removed = cache.cleanup()
    else:
        removed = len(cache)
        cache.clear()
    log_action(request.records, actor=actor_for_request(request), action='CACHE_' + action.upper(),
               object_type='cache', detail={'pattern': s.validated_data.get('pattern'), 'removed': removed})
    return Response({'ok': True, 'removed': removed})
