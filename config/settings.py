"""
Settings del proyecto Bodega AVGAL.

Todo lo configurable se lee del entorno (django-environ), opcionalmente
desde un archivo .env en la raíz del repo.
"""

from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parent.parent

# ==========================
# ENV
# ==========================
env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    TIME_ZONE=(str, "America/Santiago"),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    # Sala L
    BODEGA_GRAMOS_POR_UNIDAD=(int, 60),
    BODEGA_REDONDEO_DESECHO=(str, "round"),
    # Logging
    BODEGA_LOG_LEVEL=(str, "INFO"),
)

env_file = BASE_DIR / ".env"
if env_file.exists():
    env.read_env(str(env_file))

# ==========================
# CORE
# ==========================
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "bodega.apps.BodegaConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

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
    }
]

# ==========================
# DATABASE
# ==========================
DATABASES = {
    "default": env.db("DATABASE_URL"),
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ==========================
# I18N / TZ
# ==========================
LANGUAGE_CODE = "es-cl"
TIME_ZONE = (env("TIME_ZONE") or "America/Santiago").strip()
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

LOGIN_URL = "/admin/login/"

# ==========================
# SALA L
# ==========================
# Peso promedio de un huevo para convertir desecho (kg) a unidades
BODEGA_GRAMOS_POR_UNIDAD = env.int("BODEGA_GRAMOS_POR_UNIDAD")
# round | floor | ceil
BODEGA_REDONDEO_DESECHO = (env("BODEGA_REDONDEO_DESECHO") or "round").strip().lower()

# ==========================
# LOGGING
# ==========================
BODEGA_LOG_LEVEL = (env("BODEGA_LOG_LEVEL") or "INFO").strip().upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "{asctime} {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "bodega": {
            "handlers": ["console"],
            "level": BODEGA_LOG_LEVEL,
            "propagate": False,
        },
    },
}
