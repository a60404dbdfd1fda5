"""Management command to delete blobs that no group references."""

import logging
from datetime import timedelta
from typing import Any

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from server.apps.sharing.exceptions import MetadataStoreError
from server.apps.sharing.logic.cleanup_operations import (
    delete_orphan,
    find_orphans,
)

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Delete stored files left behind by failed or aborted uploads."""

    help = 'Delete stored files that no group references'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--older-than-hours',
            type=int,
            default=settings.SHARING_ORPHAN_MIN_AGE_HOURS,
            help='Only delete files older than this (default: {0})'.format(
                settings.SHARING_ORPHAN_MIN_AGE_HOURS,
            ),
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the sweep command.

        Args:
            args: Positional arguments (unused).
            options: Command options.

        Raises:
            CommandError: If group metadata cannot be read.
        """
        dry_run = options['dry_run']
        older_than = timedelta(hours=options['older_than_hours'])

        self.stdout.write(
            f'Looking for unreferenced files older than {older_than}',
        )

        try:
            orphans = find_orphans(older_than)
        except MetadataStoreError as exc:
            raise CommandError(
                'Group metadata is unreadable, refusing to sweep',
            ) from exc

        count = 0
        failed = 0

        for key in orphans:
            if dry_run:
                self.stdout.write(f'Would delete: {key}')
                count += 1
                continue

            try:
                delete_orphan(key)
                count += 1
            except Exception as exc:
                self.stderr.write(f'Failed to delete {key}: {exc}')
                logger.exception('Failed to delete orphaned file: %s', key)
                failed += 1

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would delete {count} orphaned files'),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Deleted {count} orphaned files, {failed} failed',
                ),
            )
