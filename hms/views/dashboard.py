"""
Dashboard statistics endpoint.

Any authenticated staff member may read the dashboard.  Statistics are
memoised per hospital and role for ``CACHE_TTL.MEDIUM``; writes that
change the underlying numbers invalidate ``dashboard:*``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.caching import CACHE_KEYS, CACHE_TTL
from hms.permissions import Role, actor_for_request
from hms.services.dashboard import compute_stats


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_stats(request):
    actor = actor_for_request(request)
    cache = request.memory_cache
    params = {'hospital': actor.hospital_id, 'role': actor.role}
    # doctors see their own appointments, so their stats are per person
    if actor.role == Role.DOCTOR:
        params['doctor'] = actor.id
    key = cache.generate_key(CACHE_KEYS.DASHBOARD_STATS, params)
    stats = cache.get_or_set(key, lambda: compute_stats(request.records, actor), CACHE_TTL.MEDIUM)
    return Response({'ok': True, 'data': stats})
