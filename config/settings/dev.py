from decouple import config as _config

from .base import LOGGING as BASE_LOGGING
from .base import *  # noqa

DEBUG = True

# In dev, allow the browsable API and relaxed CORS
CORS_ALLOW_ALL_ORIGINS = True

# Accept X-User-ID from local sibling services unless told otherwise
TRUST_INTERNAL_USER_HEADER = _config("TRUST_INTERNAL_USER_HEADER", default=True, cast=bool)

# Optional Redis cache for local parity

_REDIS_URL = _config("REDIS_URL", default="")
if _REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": _REDIS_URL,
        }
    }
    SESSION_ENGINE = "django.contrib.sessions.backends.cached_db"

# Verbose cart/pricing/order logs while developing
LOGGING = {**BASE_LOGGING}
LOGGING["loggers"] = {
    "cartflow": {
        "handlers": ["console"],
        "level": _config("CARTFLOW_LOG_LEVEL", default="DEBUG"),
        "propagate": False,
    },
}
