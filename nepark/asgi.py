"""ASGI config for the NePark project."""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'nepark.settings')

application = get_asgi_application()
