"""Django settings for the Sentry → ClickUp → GitHub ticket bridge.

Every value is read from the environment (optionally via .env files, see
config/env.py). Bridge behaviour is collected into one immutable
``BridgeConfig`` by ``apps.tickets.conf.BridgeConfig.from_settings``.
"""

from __future__ import annotations

import os
from pathlib import Path

from config.env import env_bool, env_list, load_env

BASE_DIR = Path(__file__).resolve().parent.parent

load_env(BASE_DIR)

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

INSTALLED_APPS = [
    "config.apps.BridgeAdminConfig",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_object_actions",
    "apps.events",
    "apps.correlation",
    "apps.intelligence",
    "apps.tickets",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "config" / "templates"],
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

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DJANGO_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": os.environ.get("BRIDGE_LOG_LEVEL", "INFO"),
        },
    },
}

# --- Inbound shared tokens (checked against ?token=...)
SENTRY_SHARED_TOKEN = os.environ.get("SENTRY_SHARED_TOKEN", "")
CLICKUP_SHARED_TOKEN = os.environ.get("CLICKUP_SHARED_TOKEN", "")

# --- GitHub
GITHUB_TOKEN = os.environ.get("GITHUB_TOKEN", "")
GITHUB_REPO = os.environ.get("GITHUB_REPO", "")  # "owner/repo"
GITHUB_LABELS = env_list("GITHUB_LABELS", "sentry")
GITHUB_AGENT_LABEL = os.environ.get("GITHUB_AGENT_LABEL", "")
GITHUB_ASSIGNEE = os.environ.get("GITHUB_ASSIGNEE", "")
GITHUB_API_VERSION = os.environ.get("GITHUB_API_VERSION", "2022-11-28")

# --- ClickUp
CLICKUP_TOKEN = os.environ.get("CLICKUP_TOKEN", "")
CLICKUP_LIST_ID = os.environ.get("CLICKUP_LIST_ID", "")
CLICKUP_TAGS = env_list("CLICKUP_TAGS", "sentry")
CLICKUP_FIX_TAG = os.environ.get("CLICKUP_FIX_TAG", "ai-to-fix")

# --- AI summary providers (GitHub Models first, then OpenAI)
GITHUB_MODEL_API_KEY = os.environ.get("GITHUB_MODEL_API_KEY", "")
GITHUB_MODEL_API_URL = os.environ.get(
    "GITHUB_MODEL_API_URL", "https://models.inference.ai.azure.com"
)
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")

# --- Feature flags
CREATE_GITHUB_ON_SENTRY = env_bool("CREATE_GITHUB_ON_SENTRY", False)
UPDATE_CLICKUP_ON_REPEAT = env_bool("UPDATE_CLICKUP_ON_REPEAT", True)

# --- Severity mapping (level → GitHub label), e.g. {"error":"sev-high"}
LEVEL_LABELS_JSON = os.environ.get("LEVEL_LABELS_JSON", "")

# --- Bridge wiring
BRIDGE_TRIAGE_STORE = os.environ.get("BRIDGE_TRIAGE_STORE", "clickup")
BRIDGE_ESCALATION_STORE = os.environ.get("BRIDGE_ESCALATION_STORE", "github")
BRIDGE_TRIAGE_UPDATE_POLICY = os.environ.get("BRIDGE_TRIAGE_UPDATE_POLICY", "comment")
BRIDGE_ESCALATION_UPDATE_POLICY = os.environ.get(
    "BRIDGE_ESCALATION_UPDATE_POLICY", "patch_status"
)
BRIDGE_FRAME_LIMIT = int(os.environ.get("BRIDGE_FRAME_LIMIT", "8"))
BRIDGE_BODY_FRAME_LIMIT = int(os.environ.get("BRIDGE_BODY_FRAME_LIMIT", "4"))
BRIDGE_TEST_PING_MAX_KEYS = int(os.environ.get("BRIDGE_TEST_PING_MAX_KEYS", "2"))
BRIDGE_GROUP_KEY_CASEFOLD = env_bool("BRIDGE_GROUP_KEY_CASEFOLD", False)
BRIDGE_HTTP_TIMEOUT = int(os.environ.get("BRIDGE_HTTP_TIMEOUT", "30"))

# --- Observability: "logging" (default) or "statsd"
BRIDGE_METRICS_BACKEND = os.environ.get("BRIDGE_METRICS_BACKEND", "logging")
STATSD_HOST = os.environ.get("STATSD_HOST", "localhost")
STATSD_PORT = int(os.environ.get("STATSD_PORT", "8125"))
STATSD_PREFIX = os.environ.get("STATSD_PREFIX", "bridge")
