"""
Django settings for p2pvoicemail.

Wallet and relay endpoints live in p2pvoicemail/backend/settings.py.
"""
import os

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'p2pvoicemail-local-node')

DEBUG = os.environ.get('DJANGO_DEBUG', '1') == '1'

ALLOWED_HOSTS = ['127.0.0.1', 'localhost']

INSTALLED_APPS = []

# the node only listens locally and is driven by client.py, no csrf/sessions
MIDDLEWARE = [
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'p2pvoicemail.urls'

DATABASES = {}

# base64 audio in form posts
DATA_UPLOAD_MAX_MEMORY_SIZE = 16 * 1024 * 1024

USE_TZ = True
