"""
Patient, appointment and operational report endpoints.

Reports are memoised per hospital for ``CACHE_TTL.LONG``; the write
endpoints that change their inputs invalidate ``reports:*``.  The
operational report summarises staff and audit activity, so it is kept
for ``CACHE_TTL.SHORT`` only.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.caching import CACHE_KEYS, CACHE_TTL
from hms.permissions import Permission, RequirePermission, actor_for_request
from hms.services import reports as svc


def _cached_report(request, name, build, ttl):
    actor = actor_for_request(request)
    cache = request.memory_cache
    key = cache.generate_key(CACHE_KEYS.REPORTS_DATA, {'report': name, 'hospital': actor.hospital_id})
    report = cache.get_or_set(key, lambda: build(request.records, actor.hospital_id), ttl)
    return Response({'ok': True, 'data': report})


@api_view(['GET'])
@permission_classes([IsAuthenticated, RequirePermission(Permission.VIEW_PATIENTS)])
def patient_report(request):
    return _cached_report(request, 'patients', svc.patient_report, CACHE_TTL.LONG)


@api_view(['GET'])
@permission_classes([IsAuthenticated, RequirePermission(Permission.VIEW_APPOINTMENTS)])
def appointment_report(request):
    return _cached_report(request, 'appointments', svc.appointment_report, CACHE_TTL.LONG)


@api_view(['GET'])
@permission_classes([IsAuthenticated, RequirePermission(Permission.VIEW_AUDIT_LOGS)])
def operational_report(request):
    return _cached_report(request, 'operational', svc.operational_report, CACHE_TTL.SHORT)
