"""
Dashboard statistics.

The numbers are recomputed from the record store on every call, which
is why views wrap :func:`compute_stats` in the memory cache.
"""
from __future__ import annotations

from django.utils import timezone

from hms.permissions import Actor, Role
from hms.services.appointments import todays_appointments
from hms.services.audit import recent_events
from hms.services.inventory import stock_status


def compute_stats(store, actor: Actor) -> dict:
    today = timezone.localdate().isoformat()
    appointments = todays_appointments(store, today)
    if actor.role == Role.DOCTOR:
        appointments = [a for a in appointments if a['doctor_id'] == actor.id]
    with store.lock:
        total_patients = sum(1 for p in store.patients.values() if p['primary_hospital_id'] == actor.hospital_id)
        statuses = [stock_status(i) for i in store.inventory.values() if i['is_active']]
    stats = {
        'total_patients': total_patients,
        'todays_appointments': len(appointments),
        'pending_appointments': sum(1 for a in appointments if a['status'] in ('scheduled', 'confirmed')),
        'low_stock_items': statuses.count('low'),
        'critical_stock_items': statuses.count('critical'),
        'recent_activities': [
            {'type': e['object_type'], 'action': e['action'], 'description': f"{e['action']} {e['object_id'] or ''}".strip(),
             'timestamp': e['timestamp']}
            for e in recent_events(store, limit=5)
        ],
        'generated_at': timezone.now().isoformat(),
    }
    return stats
