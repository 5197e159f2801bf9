# config/settings/local.py
import os

from .base import *  # noqa
from .base import BASE_DIR

DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"

DATABASES = {
    "default": {
        "ENGINE": os.getenv("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.getenv("DB_NAME", str(BASE_DIR / "db.sqlite3")),
    }
}
