import logging
import time

from django.apps import apps

request_logger = logging.getLogger('hms.requests')


class HospitalContextMiddleware:
    """Attach the process-wide caches and record store to each request."""

    def __init__(self, get_response):
        self.get_response = get_response
        self.config = apps.get_app_config('hms')

    def __call__(self, request):
        request.memory_cache = self.config.cache
        request.auth_cache = self.config.auth_cache
        request.records = self.config.store
        return self.get_response(request)


class RequestLogMiddleware:
    """Log one line per API request with status and duration."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.perf_counter()
        response = self.get_response(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        user = getattr(request, 'user', None)
        actor = getattr(user, 'id', None) or '-'
        level = logging.INFO
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        request_logger.log(level, '%s %s -> %s (%.1fms) actor=%s',
                           request.method, request.path, response.status_code, elapsed_ms, actor)
        return response
