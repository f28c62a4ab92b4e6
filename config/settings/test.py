# config/settings/test.py
"""
With these settings, tests run fast against in-memory SQLite.
"""
from .base import *  # noqa

SECRET_KEY = "test-only-secret-key"
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

FIELDOPS_AUTO_CREATION_ENABLED = True
FIELDOPS_CUSTOM_FIELD_PREFIX = "custom_"
FIELDOPS_DEFAULT_CURRENCY = "EUR"
