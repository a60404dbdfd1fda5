"""Custom storage backend for S3-compatible blob storage."""

import logging
from collections.abc import Collection, Iterator
from datetime import datetime
from typing import Any, final, override

from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)


@final
class BlobStorage(S3Storage):
    """S3 storage backend holding the bytes of shared files.

    Extends django-storages S3Storage with:
    - Enhanced error logging
    - Whole-blob reads returning the stored content type
    - Listing and bulk deletion by key prefix
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save file to S3 with error handling and logging.

        Args:
            name: Storage path for the file.
            content: File content (file-like object).
            max_length: Optional maximum length for the filename.

        Returns:
            Actual storage path used.

        Raises:
            Exception: If S3 upload fails.
        """
        try:
            logger.info('Uploading file to storage: %s', name)
            saved_name = super().save(name, content, max_length)
            logger.info('Successfully uploaded file: %s', saved_name)
        except Exception:
            logger.exception('Failed to upload file to storage: %s', name)
            raise
        else:
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete file from S3 with error handling and logging.

        Args:
            name: Storage path of file to delete.

        Raises:
            Exception: If S3 delete fails.
        """
        try:
            logger.info('Deleting file from storage: %s', name)
            super().delete(name)
            logger.info('Successfully deleted file: %s', name)
        except Exception:
            logger.exception('Failed to delete file from storage: %s', name)
            raise

    def read_blob(self, name: str) -> tuple[bytes, str | None]:
        """Read a whole object and its stored content type.

        Args:
            name: Storage path of the object.

        Returns:
            Tuple of object bytes and content type (None if unset).

        Raises:
            Exception: If the object is missing or S3 read fails.
        """
        logger.debug('Reading file from storage: %s', name)
        with self.open(name, 'rb') as blob:
            content = blob.read()
            content_type = blob.obj.content_type
        return content, content_type or None

    def list_blobs(self, prefix: str = '') -> Iterator[tuple[str, datetime]]:
        """List objects whose key starts with ``prefix``.

        Args:
            prefix: Key prefix, empty string lists the whole bucket.

        Yields:
            Tuples of object key and last modification time.
        """
        for summary in self.bucket.objects.filter(Prefix=prefix):
            yield summary.key, summary.last_modified

    def delete_prefix(
        self,
        prefix: str,
        keep: Collection[str] = frozenset(),
    ) -> list[str]:
        """Delete every object whose key starts with ``prefix``.

        Deletion is sequential and stops at the first failure, so
        objects listed after a failing one are left in place.

        Args:
            prefix: Key prefix, e.g. ``'{group_id}/'``. Must not be empty.
            keep: Keys under the prefix that must survive.

        Returns:
            Keys that were deleted.

        Raises:
            ValueError: If prefix is empty.
            Exception: If listing or a delete fails.
        """
        if not prefix:
            raise ValueError('Refusing to delete with an empty prefix')

        keys = [
            key
            for key, _ in self.list_blobs(prefix)
            if key not in keep
        ]
        for key in keys:
            self.delete(key)

        logger.info('Deleted %d files under prefix: %s', len(keys), prefix)
        return keys
