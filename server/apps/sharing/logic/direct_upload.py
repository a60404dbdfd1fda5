"""Client side of the browser-direct upload flow.

Files travel straight from the client to blob storage: for each file
the client asks ``/upload/token`` for a presigned POST, sends the bytes
to the bucket, and only when every file is stored it calls
``/groups/create`` with the resulting records. Files are sent one at a
time and a failure aborts the whole upload before the group is created.
"""

import enum
import logging
import time
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, final

import requests

from server.apps.sharing.exceptions import DirectUploadError
from server.apps.sharing.models import File

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT: Final = 60
_PREFIX_RANDOM_LENGTH: Final = 9


@final
class UploadStatus(enum.StrEnum):
    """Lifecycle of one file in a direct upload."""

    PENDING = 'pending'
    UPLOADING = 'uploading'
    COMPLETED = 'completed'
    ERROR = 'error'


@final
@dataclass
class TrackedFile:
    """A local file and its upload progress."""

    path: Path
    status: UploadStatus = UploadStatus.PENDING
    record: File | None = None

    @property
    def name(self) -> str:
        return self.path.name


def make_group_prefix() -> str:
    """Build a unique blob key prefix for one direct upload.

    Returns:
        Prefix like ``group_1760862600000_1f2e3d4c5``.
    """
    millis = int(time.time() * 1000)
    random_part = uuid.uuid4().hex[:_PREFIX_RANDOM_LENGTH]
    return f'group_{millis}_{random_part}'


@final
class DirectUploader:
    """Uploads local files through the browser-direct flow."""

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize DirectUploader.

        Args:
            base_url: Root URL of the sharing server.
            session: HTTP session to reuse, a new one when omitted.
            timeout: Timeout in seconds for every HTTP call.
        """
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.files: list[TrackedFile] = []

    def upload(
        self,
        paths: Iterable[Path | str],
        group_name: str | None = None,
        on_change: Callable[[TrackedFile], None] | None = None,
    ) -> dict[str, Any]:
        """Upload files one by one, then create their group.

        Args:
            paths: Local files, in group order.
            group_name: Optional group name.
            on_change: Called whenever a file changes status.

        Returns:
            The created group as returned by the server.

        Raises:
            DirectUploadError: If a file fails; later files stay pending
                and no group is created.
            requests.HTTPError: If the group cannot be created.
        """
        self.files = [TrackedFile(Path(path)) for path in paths]
        prefix = make_group_prefix()

        for tracked in self.files:
            self._set_status(tracked, UploadStatus.UPLOADING, on_change)
            try:
                tracked.record = self._upload_file(prefix, tracked.path)
            except (requests.RequestException, OSError, KeyError) as exc:
                self._set_status(tracked, UploadStatus.ERROR, on_change)
                logger.exception('Direct upload failed: %s', tracked.name)
                raise DirectUploadError(tracked.name, str(exc)) from exc
            self._set_status(tracked, UploadStatus.COMPLETED, on_change)

        logger.info('Saving group metadata for %d files', len(self.files))
        response = self.session.post(
            f'{self.base_url}/groups/create',
            json={
                'groupName': group_name or '',
                'files': [
                    tracked.record.to_dict()
                    for tracked in self.files
                    if tracked.record is not None
                ],
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()['group']

    def _upload_file(self, prefix: str, path: Path) -> File:
        token_response = self.session.post(
            f'{self.base_url}/upload/token',
            json={'pathname': f'{prefix}/{path.name}'},
            timeout=self.timeout,
        )
        token_response.raise_for_status()
        token = token_response.json()

        logger.info('Uploading %s to %s', path.name, token['pathname'])
        with path.open('rb') as stream:
            upload_response = self.session.post(
                token['url'],
                data=token['fields'],
                files={'file': (path.name, stream)},
                timeout=self.timeout,
            )
        upload_response.raise_for_status()

        return File(
            name=path.name,
            size=path.stat().st_size,
            url=token['blobUrl'],
            pathname=token['pathname'],
        )

    def _set_status(
        self,
        tracked: TrackedFile,
        status: UploadStatus,
        on_change: Callable[[TrackedFile], None] | None,
    ) -> None:
        tracked.status = status
        if on_change is not None:
            on_change(tracked)
