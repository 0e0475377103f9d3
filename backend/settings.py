"""
Configuration Django du service de baux.

Les valeurs sensibles ou dépendantes de l'environnement sont lues via os.getenv.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-secret-key")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
ALLOWED_HOSTS = [
    host.strip() for host in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "simple_history",
    "location",
    "signature",
    "leases",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "simple_history.middleware.HistoryRequestMiddleware",
]

ROOT_URLCONF = "backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "backend.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("SQLITE_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "fr-fr"
TIME_ZONE = "Europe/Paris"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
MEDIA_ROOT = os.getenv("MEDIA_ROOT", str(BASE_DIR / "uploads"))
MEDIA_URL = os.getenv("MEDIA_URL", "/uploads/")

# Écritures atomiques (fichier temporaire + rename) pour tous les documents
STORAGES = {
    "default": {"BACKEND": "backend.storage_utils.AtomicFileSystemStorage"},
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"
    },
}

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
}

# ==============================
# SIGNATURE DES BAUX
# ==============================

# Format de page du contrat (CSS @page size), en points : Letter = 612 x 792
LEASE_PAGE_SIZE = os.getenv("LEASE_PAGE_SIZE", "Letter")

# Ancres des signatures sur la DERNIÈRE page, repère haut-gauche, en points
LEASE_SIGNATURE_POSITIONS = {
    "landlord": {"x": 72, "y": 560, "width": 220, "height": 60},
    "tenant": {"x": 320, "y": 560, "width": 220, "height": 60},
}

# Prestataire de signature simulé
SIGNING_ENVELOPE_STORE = os.getenv(
    "SIGNING_ENVELOPE_STORE", "signature.coordinator.DatabaseEnvelopeStore"
)
SIGNING_COMPLETION_PROBABILITY = float(
    os.getenv("SIGNING_COMPLETION_PROBABILITY", "0.5")
)
SIGNING_RANDOM_SEED = (
    int(os.getenv("SIGNING_RANDOM_SEED")) if os.getenv("SIGNING_RANDOM_SEED") else None
)
SIGNING_POLL_MAX_ATTEMPTS = int(os.getenv("SIGNING_POLL_MAX_ATTEMPTS", "5"))
SIGNING_POLL_BACKOFF_SECONDS = float(os.getenv("SIGNING_POLL_BACKOFF_SECONDS", "1.0"))

# Alertes d'échéance (commande send_lease_expiry_alerts)
LEASE_EXPIRY_ALERT_DAYS = int(os.getenv("LEASE_EXPIRY_ALERT_DAYS", "30"))

# ==============================
# EMAIL
# ==============================

EMAIL_BACKEND = os.getenv(
    "EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend"
)
EMAIL_HOST = os.getenv("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "25"))
EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = os.getenv("EMAIL_USE_TLS", "false").lower() == "true"
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "noreply@example.com")

# ==============================
# LOGGING
# ==============================

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.getenv("LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.getenv("DJANGO_LOG_LEVEL", "WARNING"),
            "propagate": False,
        },
    },
}
