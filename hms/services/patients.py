import re
from typing import Optional

from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from hms.exceptions import Conflict

NIN_PATTERN = re.compile(r'^\d{18}$')
EDITABLE_FIELDS = ('full_name', 'date_of_birth', 'gender', 'blood_type', 'phone', 'address', 'consent_flags')


def validate_nin(nin: str) -> str:
    if not NIN_PATTERN.match(nin or ''):
        raise ValidationError({'nin': ['NIN must be 18 digits']})
    return nin


def paginate(rows: list, page: int, limit: int) -> tuple[list, dict]:
    total = len(rows)
    start = (page - 1) * limit
    pages = (total + limit - 1) // limit
    return rows[start:start + limit], {'page': page, 'limit': limit, 'total': total, 'pages': pages}


def list_patients(store, *, search: Optional[str]=None, gender: Optional[str]=None,
                  page: int=1, limit: int=20) -> tuple[list[dict], dict]:
    with store.lock:
        rows = [dict(p) for p in store.patients.values()]
    if search:
        needle = search.casefold()
        rows = [p for p in rows if needle in p['full_name'].casefold() or p['nin'].startswith(search)]
    if gender:
        rows = [p for p in rows if p['gender'] == gender]
    rows.sort(key=lambda p: p['full_name'])
    return paginate(rows, page, limit)


def get_patient(store, nin: str) -> dict:
    validate_nin(nin)
    with store.lock:
        patient = store.patients.get(nin)
        if patient is None:
            raise NotFound('patient not found')
        return dict(patient)


def create_patient(store, actor, data: dict) -> dict:
    now = timezone.now().isoformat()
    with store.lock:
        if data['nin'] in store.patients:
            raise Conflict('a patient with this NIN already exists')
        patient = {
            'nin': data['nin'],
            'full_name': data['full_name'],
            'date_of_birth': data['date_of_birth'].isoformat(),
            'gender': data['gender'],
            'blood_type': data.get('blood_type', ''),
            'phone': data.get('phone', ''),
            'address': data.get('address', ''),
            'primary_hospital_id': actor.hospital_id,
            'consent_flags': data.get('consent_flags') or {},
            'created_at': now,
            'updated_at': now,
        }
        store.patients[patient['nin']] = patient
        return dict(patient)


def update_patient(store, nin: str, changes: dict) -> dict:
    validate_nin(nin)
    with store.lock:
        patient = store.patients.get(nin)
        if patient is None:
            raise NotFound('patient not found')
        for field in EDITABLE_FIELDS:
            if field in changes:
                value = changes[field]
                patient[field] = value.isoformat() if field == 'date_of_birth' else value
        patient['updated_at'] = timezone.now().isoformat()
        return dict(patient)
