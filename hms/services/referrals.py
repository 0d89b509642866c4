from typing import Optional

from django.utils import timezone
from rest_framework.exceptions import ValidationError

KINDS = ('internal', 'emergency', 'transfer')
PRIORITIES = ('routine', 'urgent', 'emergency')
STATUSES = ('pending', 'accepted', 'rejected', 'completed')


def list_referrals(store, *, kind: Optional[str]=None, status: Optional[str]=None) -> list[dict]:
    with store.lock:
        rows = [dict(r) for r in store.referrals.values()]
    if kind:
        rows = [r for r in rows if r['kind'] == kind]
    if status:
        rows = [r for r in rows if r['status'] == status]
    return sorted(rows, key=lambda r: r['created_at'], reverse=True)


def create_referral(store, actor, data: dict) -> dict:
    with store.lock:
        patient = store.patients.get(data['patient_nin'])
        if patient is None:
            raise ValidationError({'patient_nin': ['unknown patient']})
        if data['kind'] != 'internal' and not data.get('to_hospital'):
            raise ValidationError({'to_hospital': ['required for transfers and emergencies']})
        referral = {
            'id': store.next_id('REF'),
            'kind': data['kind'],
            'patient_nin': patient['nin'],
            'patient_name': patient['full_name'],
            'from_department': data['from_department'],
            'to_department': data['to_department'],
            'to_hospital': data.get('to_hospital'),
            'reason': data['reason'],
            'priority': data.get('priority', 'routine'),
            'status': 'pending',
            'created_by': actor.id,
            'created_at': timezone.now().isoformat(),
        }
        store.referrals[referral['id']] = referral
        return dict(referral)
