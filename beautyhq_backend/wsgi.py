"""
WSGI config for the BeautyHQ backend.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "beautyhq_backend.settings")

application = get_wsgi_application()
