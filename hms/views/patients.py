"""
Patient record endpoints.

Reads require ``VIEW_PATIENTS``; creation and edits require
``CREATE_PATIENTS`` and ``EDIT_PATIENTS``.  Listing results are cached
per query; every write invalidates the cached lists, reports and
dashboards.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.caching import CACHE_KEYS, CACHE_TTL
from hms.permissions import Permission, ensure_access
from hms.serializers.patient import PatientCreateSerializer, PatientListQuerySerializer, PatientUpdateSerializer
from hms.services import patients as svc
from hms.services.audit import log_action
from hms.services.notify import invalidate

STALE_AFTER_WRITE = ('patients:*', 'reports:*', 'dashboard:*')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patients(request):
    if request.method == 'GET':
        ensure_access(request, permission=Permission.VIEW_PATIENTS)
        q = PatientListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        params = q.validated_data
        cache = request.memory_cache
        key = cache.generate_key(CACHE_KEYS.PATIENT_LIST, params)
        rows, pagination = cache.get_or_set(
            key, lambda: svc.list_patients(request.records, **params), CACHE_TTL.SHORT,
        )
        return Response({'ok': True, 'data': rows, 'pagination': pagination})

    actor = ensure_access(request, permission=Permission.CREATE_PATIENTS)
    s = PatientCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = svc.create_patient(request.records, actor, s.validated_data)
    log_action(request.records, actor=actor, action='PATIENT_CREATED', object_type='patient', object_id=patient['nin'])
    invalidate(request.memory_cache, *STALE_AFTER_WRITE)
    return Response({'ok': True, 'data': patient}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def patient_detail(request, nin: str):
    if request.method == 'GET':
        actor = ensure_access(request, permission=Permission.VIEW_PATIENTS)
        patient = svc.get_patient(request.records, nin)
        log_action(request.records, actor=actor, action='PATIENT_VIEWED', object_type='patient', object_id=nin)
        return Response({'ok': True, 'data': patient})

    actor = ensure_access(request, permission=Permission.EDIT_PATIENTS)
    s = PatientUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = svc.update_patient(request.records, nin, s.validated_data)
    log_action(request.records, actor=actor, action='PATIENT_UPDATED', object_type='patient', object_id=nin,
               detail={'fields': sorted(s.validated_data)})
    invalidate(request.memory_cache, *STALE_AFTER_WRITE)
    return Response({'ok': True, 'data': patient})
