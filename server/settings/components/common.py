"""Django settings for the server project.

The project keeps no relational data: group metadata lives in the
key-value store configured in ``caches.py`` and file bytes live in the
S3-compatible bucket configured in ``storages.py``.
"""

from typing import Final

INSTALLED_APPS: Final = (
    'django.contrib.staticfiles',

    # Our apps:
    'server.apps.sharing',
)

MIDDLEWARE: Final = (
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
)

ROOT_URLCONF = 'server.urls'

WSGI_APPLICATION = 'server.wsgi.application'

# No ORM models: metadata is stored as a single key-value aggregate
DATABASES: Final[dict[str, dict[str, str]]] = {}

# Internationalization
# https://docs.djangoproject.com/en/5.1/topics/i18n/

LANGUAGE_CODE = 'en-us'

USE_I18N = True

TIME_ZONE = 'UTC'
USE_TZ = True

# Static files (CSS, JavaScript, Images)
# https://docs.djangoproject.com/en/5.1/howto/static-files/

STATIC_URL = '/static/'

# Multipart limits: at most 100 files and 100 fields per request.
# Exceeding either makes Django answer with 400.
DATA_UPLOAD_MAX_NUMBER_FILES = 100
DATA_UPLOAD_MAX_NUMBER_FIELDS = 100

# Bigger payloads are spooled to temporary files that are removed on close
FILE_UPLOAD_HANDLERS: Final = (
    'django.core.files.uploadhandler.MemoryFileUploadHandler',
    'django.core.files.uploadhandler.TemporaryFileUploadHandler',
)

# Security
# https://docs.djangoproject.com/en/5.1/topics/security/

SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'
