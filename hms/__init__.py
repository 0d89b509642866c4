"""Hospital management application.

Staff-facing API for patients, appointments, inventory and referrals,
backed by an in-process record store, a TTL memory cache and a
role/permission gate.
"""
