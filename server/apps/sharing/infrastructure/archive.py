"""Streaming construction of uncompressed ZIP archives."""

import logging
import re
import zipfile
from collections.abc import Callable, Iterable, Iterator
from typing import Final, final

logger = logging.getLogger(__name__)

MANIFEST_NAME: Final = 'MISSING_FILES.txt'

_UNSAFE_CHARS: Final = re.compile('[^A-Za-z0-9]')


def archive_filename(group_name: str) -> str:
    """Build the ZIP filename for a group.

    Every character outside ``[A-Za-z0-9]`` becomes ``_``.

    Args:
        group_name: Human-readable group name.

    Returns:
        Filename such as ``Foto_Liburan.zip``.
    """
    return '{0}.zip'.format(_UNSAFE_CHARS.sub('_', group_name))


@final
class _ChunkSink:
    """Write-only, unseekable target collecting bytes for streaming.

    ``zipfile`` falls back to data descriptors when its target cannot
    seek, which is what lets entries be emitted as soon as written.
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write(self, chunk: bytes) -> int:
        self._chunks.append(bytes(chunk))
        return len(chunk)

    def flush(self) -> None:
        """Nothing is buffered beyond ``drain``."""

    def drain(self) -> bytes:
        chunk = b''.join(self._chunks)
        self._chunks.clear()
        return chunk


def stream_archive(
    entries: Iterable[tuple[str, Callable[[], bytes]]],
    *,
    with_manifest: bool = False,
) -> Iterator[bytes]:
    """Yield a store-only ZIP archive entry by entry.

    Entries are fetched one at a time, in order. An entry whose bytes
    cannot be fetched is logged and skipped; the archive is still
    finalized. With ``with_manifest`` a trailing text entry lists
    the skipped names.

    Args:
        entries: Pairs of entry name and a loader returning its bytes.
        with_manifest: Append the list of skipped names.

    Yields:
        Consecutive chunks of the archive.
    """
    sink = _ChunkSink()
    skipped: list[str] = []

    with zipfile.ZipFile(sink, mode='w', compression=zipfile.ZIP_STORED) as archive:
        for name, load in entries:
            try:
                logger.info('Fetching file for archive: %s', name)
                content = load()
            except Exception:
                logger.exception('Failed to fetch file for archive: %s', name)
                skipped.append(name)
                continue

            archive.writestr(name, content)
            yield sink.drain()

        if with_manifest and skipped:
            logger.warning('Archive is missing %d files', len(skipped))
            archive.writestr(MANIFEST_NAME, '\n'.join(skipped) + '\n')

    yield sink.drain()
