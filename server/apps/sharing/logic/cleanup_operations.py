"""Business logic for removing groups and reclaiming storage."""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from django.core.files.storage import default_storage
from django.utils import timezone

from server.apps.sharing.exceptions import GroupNotFoundError
from server.apps.sharing.infrastructure.metadata_store import load_groups
from server.apps.sharing.logic.group_operations import delete_group

if TYPE_CHECKING:
    from server.apps.sharing.infrastructure.storage import BlobStorage

logger = logging.getLogger(__name__)


def _get_storage() -> 'BlobStorage':
    return default_storage  # type: ignore[return-value]


def remove_group(group_id: str) -> None:
    """Delete a group's blobs, then its metadata.

    Blobs are deleted by the ``{group_id}/`` prefix and by each file's
    own pathname, which covers browser-direct uploads stored under a
    client-chosen prefix. Keys that another group claims are never
    deleted. If blob deletion fails the metadata is kept, so the
    request can be retried; files deleted before the failure are then
    gone while the group still lists them.

    Args:
        group_id: Group identifier.

    Raises:
        GroupNotFoundError: If the group does not exist.
        MetadataStoreError: If the metadata cannot be read or saved.
        Exception: If deleting from storage fails.
    """
    groups = load_groups(strict=True)
    group = next((found for found in groups if found.id == group_id), None)
    if group is None:
        raise GroupNotFoundError(group_id)

    others = [other for other in groups if other.id != group_id]
    shared = {
        file_record.pathname
        for other in others
        for file_record in other.files
    }

    storage = _get_storage()
    logger.info('Deleting files of group %s (%s)', group_id, group.name)
    deleted = set(storage.delete_prefix(f'{group_id}/', keep=shared))
    for file_record in group.files:
        pathname = file_record.pathname
        if pathname in deleted:
            continue
        if any(other.claims(pathname) for other in others):
            logger.warning(
                'Keeping %s of group %s, another group owns it',
                pathname,
                group_id,
            )
            continue
        storage.delete(pathname)
        deleted.add(pathname)

    delete_group(group_id)
    logger.info('Group deleted: %s (%s)', group_id, group.name)


def find_orphans(older_than: timedelta) -> list[str]:
    """List blobs that no group references.

    Metadata is read strictly: an unreadable store must never make
    every blob look unreferenced.

    Args:
        older_than: Minimum age; younger blobs may belong to an upload
            that is still in progress.

    Returns:
        Keys of unreferenced blobs older than the threshold.

    Raises:
        MetadataStoreError: If the metadata cannot be read.
    """
    referenced = {
        file_record.pathname
        for group in load_groups(strict=True)
        for file_record in group.files
    }
    cutoff: datetime = timezone.now() - older_than
    return [
        key
        for key, last_modified in _get_storage().list_blobs()
        if key not in referenced and last_modified <= cutoff
    ]


def delete_orphan(key: str) -> None:
    """Delete one unreferenced blob.

    Args:
        key: Blob key returned by :func:`find_orphans`.
    """
    _get_storage().delete(key)
    logger.info('Orphaned file deleted: %s', key)
