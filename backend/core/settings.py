import os
from pathlib import Path
import environ
from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent
env = environ.Env(
    DJANGO_DEBUG=(bool, True),
    DJANGO_SECRET_KEY=(str, "insecure-key"),
    DJANGO_ALLOWED_HOSTS=(str, "localhost,127.0.0.1,testserver"),
    CSRF_TRUSTED_ORIGINS=(str, ""),
    APP_ENV=(str, "production"),

    ROSTER_TIME_ZONE=(str, "Australia/Melbourne"),
    SETLIST_MAX_SONGS=(int, 3),
    AVAILABILITY_LOCKOUT_DAY=(int, 20),
    AVAILABILITY_REMINDER_DAY=(int, 10),
    AVAILABILITY_REMINDER_HOUR=(int, 9),
    SESSION_TOKEN_COOKIE=(str, "sb-access-token"),
    DEV_BYPASS_COOKIE=(str, "dev_auth"),
    PUBLIC_BASE_URL=(str, "http://localhost:8000"),

    REDIS_URL=(str, "redis://redis:6379/0"),
    CELERY_TASK_ALWAYS_EAGER=(bool, False),

    EMAIL_BACKEND=(str, "django.core.mail.backends.console.EmailBackend"),
    EMAIL_HOST=(str, ""),
    EMAIL_PORT=(int, 587),
    EMAIL_HOST_USER=(str, ""),
    EMAIL_HOST_PASSWORD=(str, ""),
    EMAIL_USE_TLS=(bool, True),
    DEFAULT_FROM_EMAIL=(str, "roster@example.com"),

    LOG_LEVEL=(str, "INFO"),
)
environ.Env.read_env(os.path.join(BASE_DIR.parent, ".env"))

SECRET_KEY = env("DJANGO_SECRET_KEY")
DEBUG = env("DJANGO_DEBUG")
ALLOWED_HOSTS = [h.strip() for h in env("DJANGO_ALLOWED_HOSTS").split(",")]
CSRF_TRUSTED_ORIGINS = [h.strip() for h in env("CSRF_TRUSTED_ORIGINS").split(",") if h.strip()]
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
USE_X_FORWARDED_HOST = True

# "development" enables the dev_auth bypass cookie
APP_ENV = env("APP_ENV")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "django_filters",
    "rostering",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "core.middleware.ErrorLoggingMiddleware",  # custom middleware to log errors
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "core.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "core.wsgi.application"

DATABASES = {
    "default": env.db("DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
}

LANGUAGE_CODE = "en-au"
TIME_ZONE = env("ROSTER_TIME_ZONE")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "static"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Identity comes from the session cookie (rostering.services.actor), not from
# DRF authenticators, so DRF never enforces CSRF or its own permission classes.
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "DEFAULT_FILTER_BACKENDS": ["django_filters.rest_framework.DjangoFilterBackend"],
    "EXCEPTION_HANDLER": "rostering.api.v1.exceptions.json_error_handler",
    "UNAUTHENTICATED_USER": None,
}

ROSTER_TIME_ZONE = env("ROSTER_TIME_ZONE")
SETLIST_MAX_SONGS = env("SETLIST_MAX_SONGS")
AVAILABILITY_LOCKOUT_DAY = env("AVAILABILITY_LOCKOUT_DAY")
AVAILABILITY_REMINDER_DAY = env("AVAILABILITY_REMINDER_DAY")
AVAILABILITY_REMINDER_HOUR = env("AVAILABILITY_REMINDER_HOUR")
SESSION_TOKEN_COOKIE = env("SESSION_TOKEN_COOKIE")
DEV_BYPASS_COOKIE = env("DEV_BYPASS_COOKIE")
PUBLIC_BASE_URL = env("PUBLIC_BASE_URL")
AUDIT_LOG_PAGE_SIZE = 50

CELERY_BROKER_URL = env("REDIS_URL")
CELERY_RESULT_BACKEND = env("REDIS_URL")
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = env("CELERY_TASK_ALWAYS_EAGER")
CELERY_BEAT_SCHEDULE = {
    "availability-reminder": {
        "task": "rostering.tasks.availability_reminder",
        "schedule": crontab(minute=0, hour=AVAILABILITY_REMINDER_HOUR, day_of_month=AVAILABILITY_REMINDER_DAY),
    },
}

EMAIL_BACKEND = env("EMAIL_BACKEND")
EMAIL_HOST = env("EMAIL_HOST")
EMAIL_PORT = env("EMAIL_PORT")
EMAIL_HOST_USER = env("EMAIL_HOST_USER")
EMAIL_HOST_PASSWORD = env("EMAIL_HOST_PASSWORD")
EMAIL_USE_TLS = env("EMAIL_USE_TLS")
DEFAULT_FROM_EMAIL = env("DEFAULT_FROM_EMAIL")

LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)
LOG_LEVEL = env("LOG_LEVEL")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "detailed": {
            "format": "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s",
        },
        "simple": {"format": "%(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
        "rotating_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "app.log",
            "maxBytes": 1024 * 1024 * 5,  # 5 MB
            "backupCount": 5,
            "formatter": "detailed",
        }
    },
    "loggers": {
        "rostering": {"handlers": ["console", "rotating_file"], "level": LOG_LEVEL},

        "django": {"handlers": ["console", "rotating_file"], "level": "INFO", "propagate": True},
        "django.request": {"handlers": ["console", "rotating_file"], "level": "ERROR", "propagate": False},
        "gunicorn.error": {"handlers": ["console", "rotating_file"], "level": "INFO", "propagate": False},
    },
}

APPEND_SLASH = False

