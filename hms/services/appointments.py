from typing import Optional

from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from hms.services.patients import paginate

STATUSES = ('scheduled', 'confirmed', 'in-progress', 'completed', 'cancelled', 'no-show')
TYPES = ('consultation', 'follow-up', 'emergency')
EDITABLE_FIELDS = ('department', 'scheduled_at', 'duration_minutes', 'status', 'type', 'doctor_id', 'notes')


def _with_patient(store, appointment: dict) -> dict:
    row = dict(appointment)
    patient = store.patients.get(row['patient_nin'])
    row['patient'] = None if patient is None else {
        'nin': patient['nin'],
        'full_name': patient['full_name'],
        'date_of_birth': patient['date_of_birth'],
        'gender': patient['gender'],
    }
    return row


def list_appointments(store, *, status: Optional[str]=None, department: Optional[str]=None,
                      date: Optional[str]=None, doctor_id: Optional[str]=None,
                      page: int=1, limit: int=20) -> tuple[list[dict], dict]:
    with store.lock:
        rows = [_with_patient(store, a) for a in store.appointments.values()]
    if status:
        rows = [a for a in rows if a['status'] == status]
    if department:
        rows = [a for a in rows if a['department'] == department]
    if date:
        rows = [a for a in rows if a['scheduled_at'].startswith(date)]
    if doctor_id:
        rows = [a for a in rows if a['doctor_id'] == doctor_id]
    rows.sort(key=lambda a: a['scheduled_at'])
    return paginate(rows, page, limit)


def get_appointment(store, appointment_id: str) -> dict:
    with store.lock:
        appointment = store.appointments.get(appointment_id)
        if appointment is None:
            raise NotFound('appointment not found')
        return _with_patient(store, appointment)


def create_appointment(store, actor, data: dict) -> dict:
    now = timezone.now().isoformat()
    with store.lock:
        if data['patient_nin'] not in store.patients:
            raise ValidationError({'patient_nin': ['unknown patient']})
        appointment = {
            'id': store.next_id('apt'),
            'patient_nin': data['patient_nin'],
            'hospital_id': actor.hospital_id,
            'department': data['department'],
            'scheduled_at': data['scheduled_at'].isoformat(),
            'duration_minutes': data.get('duration_minutes', 30),
            'status': 'scheduled',
            'type': data.get('type', 'consultation'),
            'doctor_id': data.get('doctor_id'),
            'notes': data.get('notes', ''),
            'created_by': actor.id,
            'created_at': now,
            'updated_at': now,
        }
        store.appointments[appointment['id']] = appointment
        return _with_patient(store, appointment)


def update_appointment(store, appointment_id: str, changes: dict) -> dict:
    with store.lock:
        appointment = store.appointments.get(appointment_id)
        if appointment is None:
            raise NotFound('appointment not found')
        for field in EDITABLE_FIELDS:
            if field in changes:
                value = changes[field]
                appointment[field] = value.isoformat() if field == 'scheduled_at' else value
        appointment['updated_at'] = timezone.now().isoformat()
        return _with_patient(store, appointment)


def cancel_appointment(store, appointment_id: str) -> dict:
    return update_appointment(store, appointment_id, {'status': 'cancelled'})


def todays_appointments(store, today: str) -> list[dict]:
    with store.lock:
        return [dict(a) for a in store.appointments.values() if a['scheduled_at'].startswith(today)]
