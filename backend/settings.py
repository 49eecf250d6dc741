import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-key")

DEBUG = os.getenv("DJANGO_DEBUG") == "1"

ALLOWED_HOSTS = [host for host in os.getenv("DJANGO_ALLOWED_HOSTS", "*").split(",") if host]

INSTALLED_APPS = [
    'demo_parser.apps.DemoParserConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'backend.urls'

WSGI_APPLICATION = 'backend.wsgi.application'

# Stateless service: nothing is persisted between requests.
DATABASES = {}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = False
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Demo storage (Supabase Storage) and result webhook
DEMO_STORAGE_URL = os.getenv("SUPABASE_URL", "")
DEMO_STORAGE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
DEMO_STORAGE_BUCKET = "demos"
DEMO_WEBHOOK_URL = os.getenv("WEBHOOK_URL", "")
DEMO_WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET") or os.getenv("GO_SERVICE_SECRET", "")
DEMO_PARSER_PORT = int(os.getenv("PORT", "8080"))
DEMO_DOWNLOAD_TIMEOUT = int(os.getenv("DEMO_DOWNLOAD_TIMEOUT", "120"))
DEMO_WEBHOOK_TIMEOUT = int(os.getenv("WEBHOOK_TIMEOUT", "30"))

# Celery (Redis broker)
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://127.0.0.1:6379/0")
CELERY_TASK_ALWAYS_EAGER = os.getenv("CELERY_TASK_ALWAYS_EAGER") == "1"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = "UTC"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.getenv("DJANGO_LOG_LEVEL", "INFO"),
    },
}
