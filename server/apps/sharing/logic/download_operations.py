"""Business logic for downloading files and whole groups."""

import dataclasses
import logging
import mimetypes
from functools import partial
from collections.abc import Iterator
from typing import TYPE_CHECKING, final

from django.conf import settings
from django.core.files.storage import default_storage

from server.apps.sharing.exceptions import (
    EmptyGroupError,
    FileNotInGroupError,
    GroupNotFoundError,
)
from server.apps.sharing.infrastructure.archive import (
    archive_filename,
    stream_archive,
)
from server.apps.sharing.logic.group_operations import get_group
from server.apps.sharing.models import File, Group

if TYPE_CHECKING:
    from server.apps.sharing.infrastructure.storage import BlobStorage

logger = logging.getLogger(__name__)

_FALLBACK_CONTENT_TYPE = 'application/octet-stream'


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileDownload:
    """Bytes of one file, ready to be sent as an attachment."""

    name: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        """Number of bytes in ``content``."""
        return len(self.content)


@final
@dataclasses.dataclass(frozen=True, slots=True)
class ArchiveDownload:
    """A lazily built ZIP archive of a whole group.

    Nothing is fetched from storage until ``chunks`` is iterated.
    """

    filename: str
    chunks: Iterator[bytes]


def _get_storage() -> 'BlobStorage':
    return default_storage  # type: ignore[return-value]


def detect_mime_type(filename: str) -> str:
    """Guess a MIME type from the filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string, 'application/octet-stream' if unknown.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or _FALLBACK_CONTENT_TYPE


def _resolve_group(group_id: str) -> Group:
    group = get_group(group_id)
    if group is None:
        logger.info('Group not found: %s', group_id)
        raise GroupNotFoundError(group_id)
    return group


def open_file(group_id: str, filename: str) -> FileDownload:
    """Fetch one file of a group from storage.

    When several files share ``filename`` the first one uploaded wins.

    Args:
        group_id: Group identifier.
        filename: Exact (already decoded) filename.

    Returns:
        File bytes with the stored content type, or one guessed
        from the filename if storage has none.

    Raises:
        GroupNotFoundError: If the group does not exist.
        FileNotInGroupError: If the group has no such file.
        Exception: If reading from storage fails.
    """
    group = _resolve_group(group_id)
    file_record = group.find_file(filename)
    if file_record is None:
        logger.info('File not found in group %s: %s', group_id, filename)
        raise FileNotInGroupError(group_id, filename)

    logger.info('Fetching file from storage: %s', file_record.pathname)
    content, content_type = _get_storage().read_blob(file_record.pathname)
    return FileDownload(
        name=file_record.name,
        content=content,
        content_type=content_type or detect_mime_type(file_record.name),
    )


def prepare_archive(group_id: str) -> ArchiveDownload:
    """Resolve a group and set up its ZIP archive.

    Resolution happens eagerly so that a missing or empty group can
    still be reported before any response is started.

    Args:
        group_id: Group identifier.

    Returns:
        Archive filename and its lazy chunk stream.

    Raises:
        GroupNotFoundError: If the group does not exist.
        EmptyGroupError: If the group has no files.
    """
    group = _resolve_group(group_id)
    if not group.files:
        raise EmptyGroupError(group_id)

    storage = _get_storage()
    entries = (
        (file_record.name, partial(_read_bytes, storage, file_record))
        for file_record in group.files
    )
    return ArchiveDownload(
        filename=archive_filename(group.name),
        chunks=stream_archive(
            entries,
            with_manifest=settings.SHARING_ARCHIVE_MANIFEST,
        ),
    )


def _read_bytes(storage: 'BlobStorage', file_record: File) -> bytes:
    content, _ = storage.read_blob(file_record.pathname)
    return content
