"""
Seed rows for the in-memory record store.

Each function returns fresh copies so that resetting the store never
shares mutable rows with a previous run.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

HOSPITAL = {
    "id": "hospital-1",
    "name": "Hôpital Central d'Alger",
    "code": "HCA001",
    "address": "123 Rue de la Santé, Alger",
    "phone": "+213 21 123 456",
    "email": "contact@hca.dz",
    "director": "Dr. Ahmed Benali",
    "capacity": 500,
    "type": "public",
    "region": "Alger",
    "departments": ["Urgences", "Cardiologie", "Pédiatrie", "Chirurgie", "Radiologie"],
}

STAFF = [
    ("1", "ilyes", "Ilyes Admin", "ilyes@hca.dz", "admin", "Administration"),
    ("2", "dr.benali", "Dr. Ahmed Benali", "benali@hca.dz", "doctor", "Cardiologie"),
    ("3", "nurse.fatima", "Fatima Khelifi", "fatima@hca.dz", "nurse", "Urgences"),
    ("4", "pharma.omar", "Omar Belkacem", "omar@hca.dz", "pharmacist", "Pharmacie"),
    ("5", "accueil.leila", "Leila Boumediene", "leila@hca.dz", "receptionist", "Accueil"),
]


def _stamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def patients() -> list[dict]:
    created = "2024-01-01T00:00:00Z"
    rows = [
        ("123456789012345678", "Ahmed Benali", "1980-05-15", "M", "O+"),
        ("234567890123456789", "Fatima Khelil", "1992-11-02", "F", "A+"),
        ("345678901234567890", "Mohamed Saidi", "1975-03-28", "M", "B-"),
        ("456789012345678901", "Aicha Mansouri", "2001-07-09", "F", "AB+"),
    ]
    return [
        {
            "nin": nin,
            "full_name": name,
            "date_of_birth": born,
            "gender": gender,
            "blood_type": blood,
            "phone": "",
            "address": "",
            "primary_hospital_id": HOSPITAL["id"],
            "consent_flags": {"data_sharing": True, "cross_hospital_access": True},
            "created_at": created,
            "updated_at": created,
        }
        for nin, name, born, gender, blood in rows
    ]


def appointments(today: date) -> list[dict]:
    def at(hour: int, minute: int = 0) -> str:
        return _stamp(datetime.combine(today, time(hour, minute), tzinfo=timezone.utc))

    rows = [
        ("apt_1", "123456789012345678", "Cardiologie", at(9), "confirmed", "consultation", "2"),
        ("apt_2", "234567890123456789", "Cardiologie", at(10, 30), "scheduled", "follow-up", "2"),
        ("apt_3", "345678901234567890", "Urgences", at(14), "in-progress", "emergency", "2"),
        ("apt_4", "456789012345678901", "Pédiatrie", _stamp(datetime.combine(today + timedelta(days=1), time(9), tzinfo=timezone.utc)),
         "scheduled", "consultation", None),
    ]
    return [
        {
            "id": ident,
            "patient_nin": nin,
            "hospital_id": HOSPITAL["id"],
            "department": department,
            "scheduled_at": scheduled_at,
            "duration_minutes": 30,
            "status": status,
            "type": kind,
            "doctor_id": doctor_id,
            "notes": "",
            "created_by": "5",
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-01T00:00:00Z",
        }
        for ident, nin, department, scheduled_at, status, kind, doctor_id in rows
    ]


def inventory_items() -> list[dict]:
    rows = [
        ("item_1", "Paracétamol 500mg", "medication", "boîte", 15, 50, 2.5),
        ("item_2", "Amoxicilline 1g", "medication", "boîte", 120, 40, 6.0),
        ("item_3", "Gants stériles", "consumable", "paire", 30, 200, 0.4),
        ("item_4", "Seringue 5ml", "consumable", "unité", 900, 300, 0.15),
        ("item_5", "Tensiomètre", "equipment", "unité", 6, 4, 85.0),
    ]
    return [
        {
            "id": ident,
            "hospital_id": HOSPITAL["id"],
            "name": name,
            "category": category,
            "unit": unit,
            "current_stock": stock,
            "min_threshold": threshold,
            "unit_cost": cost,
            "is_active": True,
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-01T00:00:00Z",
        }
        for ident, name, category, unit, stock, threshold, cost in rows
    ]


def referrals() -> list[dict]:
    return [
        {
            "id": "REF001",
            "kind": "internal",
            "patient_nin": "123456789012345678",
            "patient_name": "Ahmed Benali",
            "from_department": "Médecine générale",
            "to_department": "Cardiologie",
            "to_hospital": None,
            "reason": "Suspicion d'arythmie cardiaque",
            "priority": "routine",
            "status": "pending",
            "created_by": "2",
            "created_at": "2024-01-15T10:30:00Z",
        },
        {
            "id": "REF002",
            "kind": "emergency",
            "patient_nin": "345678901234567890",
            "patient_name": "Mohamed Saidi",
            "from_department": "Urgences",
            "to_department": "Réanimation",
            "to_hospital": "CHU Mustapha",
            "reason": "Détresse respiratoire",
            "priority": "emergency",
            "status": "accepted",
            "created_by": "2",
            "created_at": "2024-01-16T08:10:00Z",
        },
    ]
