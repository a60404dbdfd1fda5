"""Whole-collection access to group metadata in the key-value store.

Every group lives inside one list stored under a single key. Reads and
writes always move the entire collection, which keeps the store simple
while the number of groups stays small.
"""

import logging
from collections.abc import Iterable

from django.conf import settings
from django.core.cache import BaseCache, caches

from server.apps.sharing.exceptions import MetadataStoreError
from server.apps.sharing.models import Group

logger = logging.getLogger(__name__)


def _get_store() -> BaseCache:
    """Get the cache alias used as metadata store.

    Returns:
        Configured cache backend.
    """
    return caches[settings.SHARING_METADATA_CACHE_ALIAS]


def load_groups(*, strict: bool = False) -> list[Group]:
    """Load every group from the metadata store.

    A missing key means no groups yet. A read failure is logged and
    treated as an empty collection unless ``strict`` is set, which
    callers about to write the collection back must do.

    Args:
        strict: Raise instead of degrading on read failure.

    Returns:
        All groups, in creation order.

    Raises:
        MetadataStoreError: If reading fails and ``strict`` is set.
    """
    try:
        raw_groups = _get_store().get(settings.SHARING_METADATA_KEY)
        groups = [Group.from_dict(raw_group) for raw_group in raw_groups or ()]
    except Exception as exc:
        logger.exception('Failed to read groups from metadata store')
        if strict:
            raise MetadataStoreError('Failed to read groups') from exc
        return []
    return groups


def save_groups(groups: Iterable[Group]) -> bool:
    """Replace the whole stored collection with ``groups``.

    Args:
        groups: Every group that should remain stored.

    Returns:
        True if the write succeeded, False otherwise.
    """
    raw_groups = [group.to_dict() for group in groups]
    try:
        _get_store().set(
            settings.SHARING_METADATA_KEY,
            raw_groups,
            timeout=None,
        )
    except Exception:
        logger.exception('Failed to write groups to metadata store')
        return False

    logger.debug('Saved %d groups to metadata store', len(raw_groups))
    return True
