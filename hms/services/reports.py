"""
Patient, appointment and operational reports.

Each report is an aggregate over the record store; the views memoise
them under ``reports:data`` and writes to patients, appointments or
stock invalidate ``reports:*``.  The stock report lives with the
inventory service.
"""
from __future__ import annotations

from collections import Counter
from datetime import date

from django.utils import timezone

from hms.permissions import Role

AGE_GROUPS = ((0, 17, '0-17'), (18, 39, '18-39'), (40, 64, '40-64'), (65, 200, '65+'))
DONE = 'completed'


def _age(born: str, today: date) -> int:
    birth = date.fromisoformat(born)
    return today.year - birth.year - ((today.month, today.day) < (birth.month, birth.day))


def _age_group(age: int) -> str:
    return next(label for low, high, label in AGE_GROUPS if low <= age <= high)


def _rate(part: int, whole: int) -> float:
    return round(100 * part / whole, 1) if whole else 0.0


def patient_report(store, hospital_id: str) -> dict:
    today = timezone.localdate()
    with store.lock:
        patients = [dict(p) for p in store.patients.values() if p['primary_hospital_id'] == hospital_id]
    ages = Counter(_age_group(_age(p['date_of_birth'], today)) for p in patients)
    return {
        'total_patients': len(patients),
        'by_gender': dict(sorted(Counter(p['gender'] for p in patients).items())),
        'by_age_group': [{'group': label, 'count': ages.get(label, 0)} for _, _, label in AGE_GROUPS],
        'by_blood_type': dict(sorted(Counter(p['blood_type'] or 'unknown' for p in patients).items())),
        'generated_at': timezone.now().isoformat(),
    }


def appointment_report(store, hospital_id: str) -> dict:
    with store.lock:
        rows = [dict(a) for a in store.appointments.values() if a['hospital_id'] == hospital_id]
    statuses = Counter(a['status'] for a in rows)
    departments = {}
    for a in rows:
        bucket = departments.setdefault(a['department'], {'count': 0, 'completed': 0})
        bucket['count'] += 1
        bucket['completed'] += a['status'] == DONE
    return {
        'total_appointments': len(rows),
        'completed': statuses.get(DONE, 0),
        'cancelled': statuses.get('cancelled', 0),
        'no_show': statuses.get('no-show', 0),
        'by_status': dict(sorted(statuses.items())),
        'by_type': dict(sorted(Counter(a['type'] for a in rows).items())),
        'by_department': [
            {'department': name, 'count': b['count'], 'completion_rate': _rate(b['completed'], b['count'])}
            for name, b in sorted(departments.items())
        ],
        'generated_at': timezone.now().isoformat(),
    }


def operational_report(store, hospital_id: str) -> dict:
    with store.lock:
        staff = [m for m in store.staff.values() if m.hospital_id == hospital_id and m.is_active]
        appointments = [dict(a) for a in store.appointments.values() if a['hospital_id'] == hospital_id]
        actions = Counter(e['action'] for e in store.audit_log)
    per_doctor = Counter(a['doctor_id'] for a in appointments if a['doctor_id'])
    done_per_doctor = Counter(a['doctor_id'] for a in appointments if a['doctor_id'] and a['status'] == DONE)
    per_department = Counter(a['department'] for a in appointments)
    return {
        'staff_by_role': {role.value: sum(1 for m in staff if m.role == role.value) for role in Role},
        'staff_performance': [
            {
                'id': m.id,
                'name': m.full_name,
                'department': m.department,
                'appointments': per_doctor.get(m.id, 0),
                'completion_rate': _rate(done_per_doctor.get(m.id, 0), per_doctor.get(m.id, 0)),
            }
            for m in sorted(staff, key=lambda m: int(m.id)) if m.role == Role.DOCTOR
        ],
        'department_load': [{'department': name, 'appointments': n} for name, n in sorted(per_department.items())],
        'unassigned_appointments': sum(1 for a in appointments if not a['doctor_id']),
        'activity': dict(sorted(actions.items())),
        'generated_at': timezone.now().isoformat(),
    }
