"""Business logic for uploading files into groups.

Two entry modes end in the same group operations:

- Server-relayed: the request carries the file bytes, we put each file
  into blob storage and then create or grow the group.
- Browser-direct: the browser already put every file into blob storage
  and sends only the resulting records, which become a new group.
"""

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import ExitStack
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.core.files.storage import storages
from django.core.files.uploadedfile import UploadedFile

from server.apps.sharing.exceptions import (
    BlobUploadError,
    FileTooLargeError,
    GroupNotFoundError,
    InvalidFileRecordError,
    NoFilesError,
)
from server.apps.sharing.infrastructure.metadata_store import load_groups
from server.apps.sharing.logic.group_operations import (
    append_files,
    build_group,
    create_group,
    get_group,
)
from server.apps.sharing.models import File, Group

if TYPE_CHECKING:
    from server.apps.sharing.infrastructure.storage import BlobStorage

logger = logging.getLogger(__name__)

_RECORD_TEXT_FIELDS = ('name', 'url', 'pathname')


def _create_storage() -> 'BlobStorage':
    """Create a fresh storage backend for one worker.

    boto3 resources must not be shared between threads, so every
    concurrent upload gets its own backend instance.

    Returns:
        New BlobStorage built from the default storage settings.
    """
    return storages.create_storage(  # type: ignore[return-value]
        settings.STORAGES['default'],
    )


def upload_files(
    payloads: Sequence[UploadedFile],
    group_name: str | None = None,
    group_id: str | None = None,
) -> Group:
    """Store uploaded files and record them in a group.

    Without ``group_id`` a new group is created, otherwise the files
    are appended to that group. Files are put concurrently under
    ``{group_id}/{filename}``; if any put fails nothing is written
    to the metadata store, but blobs of the files that did succeed
    are left behind as orphans.

    Every payload is closed before returning, which deletes the
    temporary files Django spooled large uploads to.

    Args:
        payloads: Decoded files from the multipart request.
        group_name: Name for a new group, ignored when appending.
        group_id: Existing group to append to.

    Returns:
        The created or updated group.

    Raises:
        NoFilesError: If there are no payloads.
        FileTooLargeError: If a payload exceeds the size ceiling.
        GroupNotFoundError: If ``group_id`` does not exist.
        BlobUploadError: If at least one file failed to upload.
        MetadataStoreError: If the group cannot be saved.
    """
    with ExitStack() as cleanup:
        for payload in payloads:
            cleanup.callback(payload.close)

        _validate_payloads(payloads)

        if group_id is None:
            group = build_group(group_name, ())
            logger.info(
                'Creating group %s (%s) with %d files',
                group.id,
                group.name,
                len(payloads),
            )
            files = _store_payloads(group.id, payloads)
            return create_group(group.with_files(files))

        if get_group(group_id) is None:
            raise GroupNotFoundError(group_id)

        logger.info('Adding %d files to group %s', len(payloads), group_id)
        files = _store_payloads(group_id, payloads)
        return append_files(group_id, files)


def finalize_direct_upload(
    group_name: Any,
    raw_files: Any,
) -> Group:
    """Create a group from files the browser already stored.

    Records may only point at blobs no existing group owns, so a new
    group can never take over (and later delete) another group's files.

    Args:
        group_name: Requested group name, blank means the default.
        raw_files: List of ``{name, size, url, pathname}`` mappings.

    Returns:
        The created group.

    Raises:
        NoFilesError: If no records are given.
        InvalidFileRecordError: If the name or a record is malformed, or
            a record points at another group's blob.
        MetadataStoreError: If the groups cannot be read or saved.
    """
    if group_name is not None and not isinstance(group_name, str):
        raise InvalidFileRecordError('Group name must be a string')
    if not isinstance(raw_files, list):
        raise InvalidFileRecordError('Files must be a list of records')
    if not raw_files:
        raise NoFilesError('No files provided')

    files = [_parse_file_record(raw_file) for raw_file in raw_files]
    groups = load_groups(strict=True)
    for file_record in files:
        if any(group.claims(file_record.pathname) for group in groups):
            logger.warning(
                'Refusing record for claimed blob: %s',
                file_record.pathname,
            )
            raise InvalidFileRecordError(
                f'File {file_record.pathname} belongs to another group',
            )

    group = create_group(build_group(group_name, files))
    logger.info('Direct upload finalized as group %s', group.id)
    return group


def _validate_payloads(payloads: Sequence[UploadedFile]) -> None:
    if not payloads:
        raise NoFilesError('No files uploaded')

    limit = settings.SHARING_MAX_FILE_SIZE
    for payload in payloads:
        if payload.size is not None and payload.size > limit:
            raise FileTooLargeError(payload.name, payload.size, limit)


def _store_payloads(
    group_id: str,
    payloads: Sequence[UploadedFile],
) -> list[File]:
    """Upload every payload concurrently and wait for all of them.

    Args:
        group_id: Group the blobs belong to.
        payloads: Files to upload.

    Returns:
        File records in payload order, sized by the storage backend.

    Raises:
        BlobUploadError: If at least one upload failed.
    """
    workers = max(1, min(settings.SHARING_UPLOAD_CONCURRENCY, len(payloads)))
    with ThreadPoolExecutor(
        max_workers=workers,
        thread_name_prefix='blob-upload',
    ) as executor:
        futures: list[Future[File]] = [
            executor.submit(_store_payload, group_id, payload)
            for payload in payloads
        ]

    stored: list[File] = []
    failed: list[str] = []
    first_error: BaseException | None = None
    for payload, future in zip(payloads, futures, strict=True):
        error = future.exception()
        if error is None:
            stored.append(future.result())
            continue
        failed.append(payload.name or '')
        first_error = first_error or error

    if failed:
        if stored:
            logger.warning(
                'Upload to group %s failed, orphaned files: %s',
                group_id,
                ', '.join(file_record.pathname for file_record in stored),
            )
        raise BlobUploadError(failed) from first_error

    return stored


def _store_payload(group_id: str, payload: UploadedFile) -> File:
    storage = _create_storage()
    payload.seek(0)
    saved_name = storage.save(f'{group_id}/{payload.name}', payload)
    return File(
        name=payload.name or saved_name.rsplit('/', 1)[-1],
        size=storage.size(saved_name),
        url=storage.url(saved_name),
        pathname=saved_name,
    )


def _parse_file_record(raw_file: Any) -> File:
    """Validate one pre-uploaded file record.

    Args:
        raw_file: Mapping sent by the browser.

    Returns:
        File record.

    Raises:
        InvalidFileRecordError: If a field is missing or has a wrong type.
    """
    if not isinstance(raw_file, Mapping):
        raise InvalidFileRecordError('File record must be an object')

    for field in _RECORD_TEXT_FIELDS:
        field_value = raw_file.get(field)
        if not isinstance(field_value, str) or not field_value:
            raise InvalidFileRecordError(f'File record needs a "{field}"')

    size = raw_file.get('size')
    # bool is an int subclass
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise InvalidFileRecordError('File record needs a non-negative "size"')

    return File.from_dict(raw_file)
