"""Key-value store configuration.

Group metadata is kept in the ``metadata`` cache alias, backed by Redis.
Entries in this alias are written without expiry.
"""

from typing import Any, Final

from server.settings.components import config

REDIS_URL = config('REDIS_URL', default='redis://localhost:6379/0')

CACHES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    },
    'metadata': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': REDIS_URL,
        'TIMEOUT': None,  # Groups never expire
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
            'SOCKET_CONNECT_TIMEOUT': config(
                'REDIS_CONNECT_TIMEOUT',
                cast=float,
                default=5,
            ),
            'SOCKET_TIMEOUT': config(
                'REDIS_SOCKET_TIMEOUT',
                cast=float,
                default=5,
            ),
        },
    },
}
