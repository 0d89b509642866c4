from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.caching import CACHE_KEYS, CACHE_TTL
from hms.permissions import Permission, ensure_access
from hms.serializers.appointment import (
    AppointmentCreateSerializer,
    AppointmentListQuerySerializer,
    AppointmentUpdateSerializer,
)
from hms.services import appointments as svc
from hms.services.audit import log_action
from hms.services.notify import invalidate

STALE_AFTER_WRITE = ('appointments:*', 'reports:*', 'dashboard:*')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments(request):
    """List appointments (cached per query) or book a new one."""
    if request.method == 'GET':
        ensure_access(request, permission=Permission.VIEW_APPOINTMENTS)
        q = AppointmentListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        params = dict(q.validated_data)
        if params.get('date'):
            params['date'] = params['date'].isoformat()
        cache = request.memory_cache
        key = cache.generate_key(CACHE_KEYS.APPOINTMENT_LIST, params)
        rows, pagination = cache.get_or_set(
            key, lambda: svc.list_appointments(request.records, **params), CACHE_TTL.SHORT,
        )
        return Response({'ok': True, 'data': rows, 'pagination': pagination})

    actor = ensure_access(request, permission=Permission.CREATE_APPOINTMENTS)
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = svc.create_appointment(request.records, actor, s.validated_data)
    log_action(request.records, actor=actor, action='APPOINTMENT_CREATED', object_type='appointment',
               object_id=appointment['id'])
    invalidate(request.memory_cache, *STALE_AFTER_WRITE)
    return Response({'ok': True, 'data': appointment}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, appointment_id: str):
    if request.method == 'GET':
        ensure_access(request, permission=Permission.VIEW_APPOINTMENTS)
        return Response({'ok': True, 'data': svc.get_appointment(request.records, appointment_id)})

    if request.method == 'PUT':
        actor = ensure_access(request, permission=Permission.EDIT_APPOINTMENTS)
        s = AppointmentUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        appointment = svc.update_appointment(request.records, appointment_id, s.validated_data)
        action = 'APPOINTMENT_UPDATED'
    else:
        actor = ensure_access(request, permission=Permission.CANCEL_APPOINTMENTS)
        appointment = svc.cancel_appointment(request.records, appointment_id)
        action = 'APPOINTMENT_CANCELLED'
    log_action(request.records, actor=actor, action=action, object_type='appointment', object_id=appointment_id)
    invalidate(request.memory_cache, *STALE_AFTER_WRITE)
    return Response({'ok': True, 'data': appointment})
