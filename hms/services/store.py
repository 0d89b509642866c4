"""
Process-local record store.

The application keeps no database: every row lives in this store for
the lifetime of the process.  One instance is created by the app config
and attached to requests as ``request.records``.
"""
from __future__ import annotations

import copy
import itertools
import threading
from collections import deque
from datetime import date
from typing import Optional

from django.utils import timezone

from hms import fixtures
from hms.services.staff import StaffMember, seed_staff

AUDIT_LOG_LIMIT = 1000


class RecordStore:
    def __init__(self, today: Optional[date] = None):
        self.lock = threading.RLock()
        self._today = today
        self.reset()

    def reset(self) -> None:
        today = self._today or timezone.localdate()
        with self.lock:
            self.hospital: dict = copy.deepcopy(fixtures.HOSPITAL)
            self.staff: dict[str, StaffMember] = {m.id: m for m in seed_staff()}
            self.patients: dict[str, dict] = {p["nin"]: p for p in fixtures.patients()}
            self.appointments: dict[str, dict] = {a["id"]: a for a in fixtures.appointments(today)}
            self.inventory: dict[str, dict] = {i["id"]: i for i in fixtures.inventory_items()}
            self.transactions: list[dict] = []
            self.referrals: dict[str, dict] = {r["id"]: r for r in fixtures.referrals()}
            self.audit_log: deque = deque(maxlen=AUDIT_LOG_LIMIT)
            self._seq = itertools.count(100)

    def next_id(self, prefix: str) -> str:
        with self.lock:
            return f"{prefix}_{next(self._seq)}"
