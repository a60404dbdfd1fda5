"""Group repository: create, read, append and delete groups.

Every operation loads the whole collection, changes it in memory and
saves the whole collection back. This read-modify-write is not atomic:
two concurrent writers that read the same snapshot race, and the later
save silently discards the earlier writer's change (lost update).
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from django.conf import settings
from django.utils import timezone

from server.apps.sharing.exceptions import GroupNotFoundError, MetadataStoreError
from server.apps.sharing.infrastructure.metadata_store import (
    load_groups,
    save_groups,
)
from server.apps.sharing.models import File, Group

logger = logging.getLogger(__name__)


def get_all_groups() -> list[Group]:
    """Return every stored group, in creation order."""
    return load_groups()


def get_group(group_id: str) -> Group | None:
    """Find a group by id.

    Args:
        group_id: Group identifier.

    Returns:
        The group, or None if no group has this id.
    """
    return next(
        (group for group in load_groups() if group.id == group_id),
        None,
    )


def build_group(
    group_name: str | None,
    files: Iterable[File],
    group_id: str | None = None,
) -> Group:
    """Assemble a new group from already stored files.

    Shared by both upload modes; the result still has to be persisted
    with :func:`create_group`.

    Args:
        group_name: Requested name, blank means the default name.
        files: Stored file records, in upload order.
        group_id: Id the files were stored under, a new one when omitted.

    Returns:
        New group with fresh id, timestamp and total size.
    """
    return Group.create(
        name=(group_name or '').strip() or settings.SHARING_DEFAULT_GROUP_NAME,
        files=files,
        uploaded_at=_now(),
        group_id=group_id,
    )


def create_group(group: Group) -> Group:
    """Append a fully formed group to the collection.

    Args:
        group: Group with id and total size already set.

    Returns:
        The stored group.

    Raises:
        MetadataStoreError: If the collection cannot be read or saved.
    """
    groups = load_groups(strict=True)
    groups.append(group)
    _save(groups)

    logger.info(
        'Group created: %s (%d files, %d bytes)',
        group.id,
        len(group.files),
        group.total_size,
    )
    return group


def append_files(group_id: str, new_files: Iterable[File]) -> Group:
    """Add files after the existing files of a group.

    Args:
        group_id: Group identifier.
        new_files: File records to append, in upload order.

    Returns:
        The updated group with recomputed total size.

    Raises:
        GroupNotFoundError: If no group has this id.
        MetadataStoreError: If the collection cannot be read or saved.
    """
    groups = load_groups(strict=True)
    index = next(
        (
            position
            for position, group in enumerate(groups)
            if group.id == group_id
        ),
        None,
    )
    if index is None:
        raise GroupNotFoundError(group_id)

    existing = groups[index]
    updated = existing.with_files((*existing.files, *new_files))
    groups[index] = updated
    _save(groups)

    logger.info(
        'Appended %d files to group %s (now %d files, %d bytes)',
        len(updated.files) - len(existing.files),
        group_id,
        len(updated.files),
        updated.total_size,
    )
    return updated


def delete_group(group_id: str) -> bool:
    """Remove a group from the collection.

    Deleting an unknown id is not an error.

    Args:
        group_id: Group identifier.

    Returns:
        Always True, whether or not the group existed.

    Raises:
        MetadataStoreError: If the collection cannot be read or saved.
    """
    groups = load_groups(strict=True)
    remaining = [group for group in groups if group.id != group_id]
    if len(remaining) == len(groups):
        logger.info('Group already absent, nothing to delete: %s', group_id)
        return True

    _save(remaining)

    logger.info('Group metadata deleted: %s', group_id)
    return True


def _now() -> datetime:
    # Stored timestamps keep milliseconds only
    moment = timezone.now()
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


def _save(groups: list[Group]) -> None:
    if not save_groups(groups):
        raise MetadataStoreError('Failed to save groups')
