from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

UPDATES_GROUP = 'updates'


def broadcast_refresh(keys: list[str]) -> None:
    """Tell connected dashboards which cached views went stale."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    now = timezone.now()
    event = {'type': 'broadcast.refresh', 'version': int(now.timestamp()), 'ts': now.isoformat(), 'keys': keys[:50]}
    async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)


def invalidate(cache, *patterns: str) -> int:
    """Drop cached reads matching ``patterns`` and announce the refresh."""
    removed = sum(cache.invalidate_pattern(p) for p in patterns)
    broadcast_refresh(list(patterns))
    return removed
