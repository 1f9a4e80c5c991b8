import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().upper() in {"TRUE", "T", "1", "YES", "Y"}


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-market-stock-key")
DEBUG = _env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = [h.strip() for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "core",
    "stock",
    "reports",
    "imports",
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

ROOT_URLCONF = "market_stock.urls"
WSGI_APPLICATION = "market_stock.wsgi.application"

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

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("MARKET_STOCK_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "America/New_York"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
MEDIA_URL = "media/"
MEDIA_ROOT = BASE_DIR / "media"

# ---------- Logging ----------
LOG_LEVEL = os.environ.get("MARKET_STOCK_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "[{levelname}] {asctime} {name}: {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        app: {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False}
        for app in ("core", "stock", "reports", "imports")
    },
}

# ---------- Dominio: stock ----------
# Si es False, un tipo/categoría desconocido en un lote es un error (no se crea).
STOCK_AUTO_CREATE_TAXONOMY = _env_bool("STOCK_AUTO_CREATE_TAXONOMY", True)
STOCK_DEFAULT_UNIT = "pieces"
STOCK_PAGE_SIZE = 50
STOCK_HISTORY_DAYS = 7

# ---------- Dominio: reportes ----------
REPORTS_TOP_RETURNS_LIMIT = 20
REPORTS_LOW_SALES_THRESHOLD = 50  # % del promedio
REPORTS_CRITICAL_THRESHOLD = 30   # % del promedio

MARKET_LOCATIONS = [
    "Union Square, Manhattan",
    "Columbia University, West Manhattan",
    "Tribecca, Lower Manhattan",
    "Larchmont Westchester, NY",
    "Carroll Gardens, Brooklyn",
    "Jackson Heights, Queens",
]
