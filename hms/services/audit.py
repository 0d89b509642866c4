import logging
from typing import Any, Dict, Optional

from django.utils import timezone

from hms.permissions import Actor

logger = logging.getLogger('hms.audit')


def log_action(store, *, actor: Optional[Actor], action: str, object_type: Optional[str]=None,
               object_id: Optional[str]=None, detail: Optional[Dict[str, Any]]=None) -> dict:
    event = {
        'timestamp': timezone.now().isoformat(),
        'actor_id': actor.id if actor else None,
        'actor_username': actor.username if actor else None,
        'action': action,
        'object_type': object_type,
        'object_id': object_id,
        'detail': detail or {},
    }
    with store.lock:
        store.audit_log.append(event)
    logger.info('%s by %s on %s:%s', action, event['actor_username'] or 'anonymous', object_type, object_id)
    return event


def recent_events(store, *, action: Optional[str]=None, limit: int=100) -> list[dict]:
    with store.lock:
        events = list(store.audit_log)
    if action:
        events = [e for e in events if e['action'] == action]
    return list(reversed(events[-limit:]))
