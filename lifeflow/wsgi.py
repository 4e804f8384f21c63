"""
WSGI config for the lifeflow project.

It exposes the WSGI callable as a module-level variable named ``application``.
"""
import os

from dotenv import load_dotenv
from django.core.wsgi import get_wsgi_application

load_dotenv(override=False)

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lifeflow.settings')

application = get_wsgi_application()
