from django.apps import apps
from django.http import JsonResponse


def healthz(request):
    config = apps.get_app_config('hms')
    sweeper = config.sweeper
    return JsonResponse({
        'ok': True,
        'cache': {'size': len(config.cache), 'sweeper': bool(sweeper and sweeper.running)},
    })
