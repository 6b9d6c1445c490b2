from .base import LOGGING as BASE_LOGGING
from .base import REST_FRAMEWORK as BASE_REST_FRAMEWORK
from .base import *  # noqa

# Test settings: force SQLite so pytest never needs a database server
DEBUG = False

# Use a local SQLite database for reliability and speed in tests
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test_db.sqlite3",  # noqa: F405
    }
}

# Tests talk to fake upstreams through httpx.MockTransport
CATALOG_SERVICE_URL = "http://catalog.test"
CART_SERVICE_URL = "http://cart.test"
CART_GATEWAY = "local"
DEFAULT_CURRENCY = "CHF"
TRUST_INTERNAL_USER_HEADER = True
JWT_ACCESS_SECRET = "test-jwt-secret"
SIMPLE_JWT = {**SIMPLE_JWT, "SIGNING_KEY": JWT_ACCESS_SECRET}  # noqa: F405

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

# Slightly relax throttling for tests to reduce flakiness
REST_FRAMEWORK = {**BASE_REST_FRAMEWORK}
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {
    **BASE_REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {}),
    "cart": "1000/min",
    "cart_write": "1000/min",
    "orders": "1000/min",
    "orders_write": "1000/min",
}

# Let cartflow records reach the root logger so pytest's caplog sees them
LOGGING = {**BASE_LOGGING}
LOGGING["loggers"] = {
    "cartflow": {
        "level": "DEBUG",
        "propagate": True,
    },
}
