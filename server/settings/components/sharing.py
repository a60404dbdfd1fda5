"""File sharing settings."""

from server.settings.components import config

# Name given to groups uploaded without one
SHARING_DEFAULT_GROUP_NAME = config(
    'SHARING_DEFAULT_GROUP_NAME',
    default='Kelompok Tanpa Nama',
)

# Metadata store: cache alias and the single key holding every group
SHARING_METADATA_CACHE_ALIAS = config(
    'SHARING_METADATA_CACHE_ALIAS',
    default='metadata',
)
SHARING_METADATA_KEY = config(
    'SHARING_METADATA_KEY',
    default='snapaja:groups',
)

# Per-file size ceiling (1 GiB)
SHARING_MAX_FILE_SIZE = config(
    'SHARING_MAX_FILE_SIZE',
    cast=int,
    default=1024 * 1024 * 1024,
)

# Worker threads for concurrent blob uploads within one request
SHARING_UPLOAD_CONCURRENCY = config(
    'SHARING_UPLOAD_CONCURRENCY',
    cast=int,
    default=8,
)

# Lifetime of browser-direct upload authorizations, in seconds
SHARING_UPLOAD_TOKEN_EXPIRY = config(
    'SHARING_UPLOAD_TOKEN_EXPIRY',
    cast=int,
    default=3600,
)

# Append a MISSING_FILES.txt entry to archives that skipped files
SHARING_ARCHIVE_MANIFEST = config(
    'SHARING_ARCHIVE_MANIFEST',
    cast=bool,
    default=False,
)

# Unreferenced blobs younger than this are left alone by sweep_orphans
SHARING_ORPHAN_MIN_AGE_HOURS = config(
    'SHARING_ORPHAN_MIN_AGE_HOURS',
    cast=int,
    default=24,
)
