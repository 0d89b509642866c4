from django.apps import AppConfig
from django.conf import settings


class HmsConfig(AppConfig):
    name = 'hms'
    verbose_name = 'Hospital management'

    cache = None
    auth_cache = None
    store = None
    sweeper = None

    def ready(self):
        from hms.caching import CacheSweeper, MemoryCache
        from hms.services.store import RecordStore

        conf = settings.HMS_CACHE
        self.cache = MemoryCache(default_ttl=conf['DEFAULT_TTL_MS'])
        # revoked tokens and password reset tokens; admin cache maintenance never reaches it
        self.auth_cache = MemoryCache(default_ttl=conf['AUTH_TTL_MS'])
        self.store = RecordStore()
        if conf['SWEEP_ENABLED']:
            self.sweeper = CacheSweeper(self.cache, self.auth_cache,
                                        interval_seconds=conf['SWEEP_INTERVAL_SECONDS'])
            self.sweeper.start()
