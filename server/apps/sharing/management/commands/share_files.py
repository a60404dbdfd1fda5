"""Management command to upload local files through the direct flow."""

from pathlib import Path
from typing import Any

import requests
from django.core.management.base import BaseCommand, CommandError

from server.apps.sharing.exceptions import DirectUploadError
from server.apps.sharing.logic.direct_upload import (
    DirectUploader,
    TrackedFile,
)


class Command(BaseCommand):
    """Upload files straight to storage, then create their group."""

    help = 'Upload local files to a sharing server as a new group'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument('base_url', help='Root URL of the server')
        parser.add_argument('paths', nargs='+', type=Path)
        parser.add_argument(
            '--group-name',
            default='',
            help='Name of the new group',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the upload.

        Args:
            args: Positional arguments (unused).
            options: Command options.

        Raises:
            CommandError: If a file is missing or the upload fails.
        """
        paths: list[Path] = options['paths']
        missing = [str(path) for path in paths if not path.is_file()]
        if missing:
            raise CommandError('Not a file: {0}'.format(', '.join(missing)))

        uploader = DirectUploader(options['base_url'])
        try:
            group = uploader.upload(
                paths,
                group_name=options['group_name'],
                on_change=self._report,
            )
        except (DirectUploadError, requests.RequestException) as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(
            self.style.SUCCESS(
                'Created group {0} ({1}) with {2} files'.format(
                    group['id'],
                    group['name'],
                    len(group['files']),
                ),
            ),
        )

    def _report(self, tracked: TrackedFile) -> None:
        self.stdout.write(f'{tracked.name}: {tracked.status}')
