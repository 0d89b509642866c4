from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.caching import CACHE_KEYS, CACHE_TTL
from hms.permissions import Permission, ensure_access
from hms.serializers.admin import HospitalSettingsSerializer
from hms.services.audit import log_action
from hms.services.notify import invalidate


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def hospital_settings(request):
    store = request.records
    cache = request.memory_cache
    if request.method == 'GET':
        def load():
            with store.lock:
                return dict(store.hospital)
        return Response({'ok': True, 'data': cache.get_or_set(CACHE_KEYS.HOSPITAL_SETTINGS, load, CACHE_TTL.LONG)})

    actor = ensure_access(request, permission=Permission.MANAGE_HOSPITAL_SETTINGS)
    s = HospitalSettingsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    with store.lock:
        store.hospital.update(s.validated_data)
        store.hospital['updated_at'] = timezone.now().isoformat()
        data = dict(store.hospital)
    log_action(store, actor=actor, action='SETTINGS_UPDATED', object_type='hospital', object_id=data['id'],
               detail={'fields': sorted(s.validated_data)})
    invalidate(cache, CACHE_KEYS.HOSPITAL_SETTINGS)
    return Response({'ok': True, 'data': data})
