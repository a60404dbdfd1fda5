"""Direct-upload authorizations for browser-to-storage transfer.

The browser asks for an authorization per file, then posts the file
straight to the bucket using a presigned POST policy. Our server never
sees the bytes; it only records the result via ``/groups/create``.
"""

import json
import logging
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.files.storage import default_storage
from django.utils import timezone

from server.apps.sharing.exceptions import UploadTokenError
from server.apps.sharing.infrastructure.metadata_store import load_groups
from server.apps.sharing.models import format_timestamp

if TYPE_CHECKING:
    from server.apps.sharing.infrastructure.storage import BlobStorage

logger = logging.getLogger(__name__)


def _get_storage() -> 'BlobStorage':
    return default_storage  # type: ignore[return-value]


def issue_upload_token(pathname: str) -> dict[str, Any]:
    """Issue a presigned POST policy for uploading one object.

    Any content type is accepted; the size is capped at
    ``SHARING_MAX_FILE_SIZE`` through a ``content-length-range``
    condition enforced by the bucket. Keys owned by an existing group
    are refused so their blobs cannot be overwritten.

    Args:
        pathname: Blob key the browser will upload to.

    Returns:
        Token payload: POST url and form fields, the target pathname,
        the public blob url and the upload constraints.

    Raises:
        UploadTokenError: If pathname is invalid, owned by a group, or
            signing fails.
        MetadataStoreError: If the groups cannot be read.
    """
    if not isinstance(pathname, str):
        raise UploadTokenError('A valid pathname is required')

    pathname = pathname.strip().lstrip('/')
    if not pathname or '..' in pathname.split('/'):
        raise UploadTokenError('A valid pathname is required')

    if any(group.claims(pathname) for group in load_groups(strict=True)):
        logger.warning('Upload token refused for claimed key: %s', pathname)
        raise UploadTokenError('Pathname belongs to an existing group')

    logger.info('Generating upload token for: %s', pathname)

    storage = _get_storage()
    max_size = settings.SHARING_MAX_FILE_SIZE
    expires_in = settings.SHARING_UPLOAD_TOKEN_EXPIRY
    token_payload = json.dumps({'uploadedAt': format_timestamp(timezone.now())})

    try:
        presigned = storage.connection.meta.client.generate_presigned_post(
            Bucket=storage.bucket_name,
            Key=pathname,
            Conditions=[['content-length-range', 0, max_size]],
            ExpiresIn=expires_in,
        )
    except (BotoCoreError, ClientError) as exc:
        logger.exception('Failed to generate upload token for: %s', pathname)
        raise UploadTokenError(str(exc)) from exc

    return {
        'url': presigned['url'],
        'fields': presigned['fields'],
        'pathname': pathname,
        'blobUrl': storage.url(pathname),
        'maximumSizeInBytes': max_size,
        'allowedContentTypes': None,
        'tokenPayload': token_payload,
        'expiresIn': expires_in,
    }
