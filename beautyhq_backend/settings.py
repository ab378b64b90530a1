import os
import sys

from configparser import ConfigParser
from datetime import timedelta
from pathlib import Path

import dj_database_url
from dotenv import load_dotenv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# ---- Loader com prioridade: ENV > .env > settings.ini ----

# Carrega .env (sem sobreescrever env já setado)
load_dotenv(BASE_DIR / ".env", override=False)


def _read_ini():
    ini_path = BASE_DIR / "settings.ini"

    if not ini_path.exists():
        return {}

    parser = ConfigParser(interpolation=None)
    parser.read(ini_path)
    data = {}

    # Uma seção por ambiente (dev/uat/prod)
    for section in parser.sections():
        for k, v in parser.items(section):
            data.setdefault(section, {})
            data[section][k.upper()] = v
    return data


INI_ALL = _read_ini()


# Helper para ler configs: pega de ENV, senão .env (já carregado), senão INI[ENV]
def env_get(name: str, default=None):
    val = os.getenv(name)
    if val is not None:
        return val
    section = os.getenv("DJANGO_ENV", "dev")
    return (INI_ALL.get(section, {}) or {}).get(name.upper(), default)


def env_int(name: str, default: int) -> int:
    v = env_get(name, default)
    try:
        return int(str(v))
    except (TypeError, ValueError):
        return default


def env_str(name: str, default: str) -> str:
    return str(env_get(name, default))


# Define qual ambiente está sendo usado
ENV = os.getenv("DJANGO_ENV", "dev")  # dev, uat, prod

# Segurança / básico
SECRET_KEY = env_get("SECRET_KEY", "dev-secret-key-change-me")
DEBUG = str(env_get("DEBUG", "false")).lower() in {"1", "true", "yes", "on"}
ALLOWED_HOSTS = [
    h.strip()
    for h in str(env_get("ALLOWED_HOSTS", "localhost,127.0.0.1,0.0.0.0")).split(",")
    if h.strip()
]

if "test" in sys.argv or "pytest" in sys.modules:
    ALLOWED_HOSTS.append("testserver")

# Application definition

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "corsheaders",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "drf_spectacular_sidecar",
    "django_prometheus",
    # APPS
    "beautyhq_backend",
    "users",
    "core.apps.CoreConfig",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "beautyhq_backend.middleware.RequestLoggingMiddleware",  # Logging com X-Request-ID
    "django_prometheus.middleware.PrometheusBeforeMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_prometheus.middleware.PrometheusAfterMiddleware",
]

CORS_ALLOW_ALL_ORIGINS = True

ROOT_URLCONF = "beautyhq_backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
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

WSGI_APPLICATION = "beautyhq_backend.wsgi.application"


# Database
DATABASE_URL = env_get("DATABASE_URL", f"sqlite:///{BASE_DIR/'db.sqlite3'}")
DATABASES = {"default": dj_database_url.parse(DATABASE_URL, conn_max_age=600)}

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]


# Internationalization

LANGUAGE_CODE = "en-us"

TIME_ZONE = "Europe/Lisbon"

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)

STATIC_URL = "static/"
STATIC_ROOT = os.path.join(BASE_DIR, "static")

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST_FRAMEWORK config
# JWT (apps mobile) e sessão (painel web) resolvem para o mesmo request.user;
# a identidade do tenant é derivada dele em users.identity.
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.UserRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "user": env_str("THROTTLE_USER", "1000/day"),
    },
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": env_int("API_PAGE_SIZE", 50),
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "beautyhq_backend.error_handling.custom_exception_handler",
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=env_int("JWT_ACCESS_MIN", 60)),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=env_int("JWT_REFRESH_DAYS", 7)),
    "AUTH_HEADER_TYPES": ("Bearer",),
}

AUTH_USER_MODEL = "users.CustomUser"

SPECTACULAR_SETTINGS = {
    "TITLE": "BeautyHQ API",
    "DESCRIPTION": "Agenda, séries recorrentes e isolamento por negócio.",
    "VERSION": "1.0.0",
    "COMPONENT_SPLIT_REQUEST": True,
    "SCHEMA_PATH_PREFIX": r"/api/",
}

# =====================================================
# RECORRÊNCIA E ESCOPO DE NEGÓCIO
# =====================================================

# Limite padrão quando a regra não traz endDate nem occurrences
RECURRENCE_DEFAULT_OCCURRENCES = env_int("RECURRENCE_DEFAULT_OCCURRENCES", 12)

# Teto absoluto de ocorrências geradas por série (2 anos semanais)
RECURRENCE_MAX_OCCURRENCES = env_int("RECURRENCE_MAX_OCCURRENCES", 104)

DEFAULT_APPOINTMENT_DURATION_MINUTES = env_int(
    "DEFAULT_APPOINTMENT_DURATION_MINUTES", 60
)

# Política para resolver a localização quando o pedido não traz locationId.
# Opções: core.policies.RequireExplicitLocation | core.policies.FirstLocationOfBusiness
DEFAULT_LOCATION_POLICY = env_str(
    "DEFAULT_LOCATION_POLICY", "core.policies.FirstLocationOfBusiness"
)

LOCATION_SCOPE_CACHE_TTL = env_int("LOCATION_SCOPE_CACHE_TTL", 60)

# =====================================================
# LOGGING CONFIGURATION
# =====================================================

# Nível de log base
LOG_LEVEL = env_get("LOG_LEVEL", "INFO")

# Formato de log (json para produção, dev para desenvolvimento)
LOG_FORMAT = env_get("LOG_FORMAT", "dev" if DEBUG else "json")

# Arquivo de log (opcional)
LOG_FILE = env_get("LOG_FILE", "")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "beautyhq_backend.logging_utils.JSONFormatter",
        },
        "dev": {
            "()": "beautyhq_backend.logging_utils.DevelopmentFormatter",
        },
        "simple": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "filters": {
        "request_context": {
            "()": "beautyhq_backend.logging_utils.RequestContextFilter",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": LOG_FORMAT,
            "filters": ["request_context"],
            "level": LOG_LEVEL,
        },
    },
    "loggers": {
        "beautyhq_backend": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "core": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "users": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "django.db.backends": {
            "handlers": ["console"],
            "level": "WARNING" if not DEBUG else "DEBUG",
            "propagate": False,
        },
        "django.security": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
}

if LOG_FILE:
    LOGGING["handlers"]["file"] = {
        "class": "logging.handlers.RotatingFileHandler",
        "filename": LOG_FILE,
        "maxBytes": 10 * 1024 * 1024,  # 10MB
        "backupCount": 5,
        "formatter": "json",
        "filters": ["request_context"],
        "level": LOG_LEVEL,
    }

    for logger_name in LOGGING["loggers"]:
        LOGGING["loggers"][logger_name]["handlers"].append("file")
    LOGGING["root"]["handlers"].append("file")

# =====================================================
# CACHE CONFIGURATION (Redis + Fallbacks)
# =====================================================

# Cache URL: redis://host:port/db ou locmem:// para desenvolvimento
CACHE_URL: str = env_str("CACHE_URL", "locmem://")

if CACHE_URL.startswith("redis://"):
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": CACHE_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
                "CONNECTION_POOL_KWARGS": {
                    "retry_on_timeout": True,
                    "socket_connect_timeout": 5,
                    "socket_timeout": 5,
                    "max_connections": 50,
                },
                "IGNORE_EXCEPTIONS": True,  # Graceful fallback em caso de erro Redis
            },
            "KEY_PREFIX": "beautyhq",
            "TIMEOUT": 300,
            "VERSION": 1,
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "beautyhq-cache",
            "TIMEOUT": 300,
            "OPTIONS": {
                "MAX_ENTRIES": 1000,
                "CULL_FREQUENCY": 3,
            },
        }
    }
