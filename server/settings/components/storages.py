"""Django storage configuration for S3-compatible backends.

This module configures django-storages to work with:
- MinIO for local development
- Any S3-compatible bucket in production

Blob keys follow ``{group_id}/{filename}`` and objects are served
from public URLs, so query string auth is off by default.
"""

from typing import Any, Final

from botocore.config import Config

from server.settings.components import config

# Storage configuration dictionary
# Uses S3-compatible storage for shared files, local storage for static files
STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'server.apps.sharing.infrastructure.storage.BlobStorage',
        'OPTIONS': {
            'bucket_name': config(
                'AWS_STORAGE_BUCKET_NAME',
                default='snapaja',
            ),
            'access_key': config('AWS_ACCESS_KEY_ID', default=None),
            'secret_key': config('AWS_SECRET_ACCESS_KEY', default=None),
            'endpoint_url': config(
                'AWS_S3_ENDPOINT_URL',
                default=None,
            ),
            'region_name': config(
                'AWS_S3_REGION_NAME',
                default='us-east-1',
            ),
            'custom_domain': config('AWS_S3_CUSTOM_DOMAIN', default=None),
            'querystring_auth': config(
                'AWS_QUERYSTRING_AUTH',
                cast=bool,
                default=False,
            ),
            'file_overwrite': True,  # Keys are `{group_id}/{filename}`
            'default_acl': None,  # Inherit bucket ACL
            'client_config': Config(
                connect_timeout=config(
                    'SHARING_BLOB_CONNECT_TIMEOUT',
                    cast=float,
                    default=10,
                ),
                read_timeout=config(
                    'SHARING_BLOB_READ_TIMEOUT',
                    cast=float,
                    default=60,
                ),
                retries={
                    'max_attempts': config(
                        'SHARING_BLOB_MAX_ATTEMPTS',
                        cast=int,
                        default=1,
                    ),
                    'mode': 'standard',
                },
                signature_version='s3v4',
            ),
        },
    },
    'staticfiles': {
        # Keep static files separate from shared files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
