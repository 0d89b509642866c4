import json
import logging
from urllib.parse import parse_qs

from channels.generic.websocket import AsyncWebsocketConsumer
from django.apps import apps
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

from hms.authentication import is_revoked
from hms.services.notify import UPDATES_GROUP

logger = logging.getLogger(__name__)

# Application close code for a missing, invalid or revoked token
CLOSE_UNAUTHORIZED = 4401


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes cache refresh events to connected dashboards."""

    async def connect(self):
        query = parse_qs(self.scope.get('query_string', b'').decode())
        raw = (query.get('token') or [''])[0]
        try:
            token = AccessToken(raw)
        except TokenError as e:
            logger.info('websocket rejected: %s', e)
            await self.close(code=CLOSE_UNAUTHORIZED)
            return
        if is_revoked(apps.get_app_config('hms').auth_cache, token):
            await self.close(code=CLOSE_UNAUTHORIZED)
            return

        self.user_id = str(token['user_id'])
        await self.channel_layer.group_add(UPDATES_GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({'type': 'welcome', 'message': 'connected'}))

    async def disconnect(self, close_code):
        if getattr(self, 'user_id', None):
            await self.channel_layer.group_discard(UPDATES_GROUP, self.channel_name)

    async def broadcast_refresh(self, event):
        # event: {"type": "broadcast.refresh", "version": int, "ts": "...", "keys": [...]}
        await self.send(json.dumps(event))
