"""
WSGI config for the hospital management project.

Exposes the WSGI callable as ``application``.  WebSocket updates are
only available through :mod:`hospital.asgi`.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hospital.settings')

application = get_wsgi_application()
