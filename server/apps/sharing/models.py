"""Metadata records for shared file groups.

Groups are not ORM models: the whole collection is stored as one
value in the key-value store, so records are plain immutable
dataclasses that translate to and from the stored dict shape.
"""

import dataclasses
import uuid
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, Self, final


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with milliseconds.

    Example: ``2026-10-19T08:30:00.000Z``.

    Args:
        moment: Timezone-aware datetime.

    Returns:
        Formatted timestamp string.
    """
    utc_moment = moment.astimezone(UTC)
    return utc_moment.isoformat(timespec='milliseconds').replace(
        '+00:00',
        'Z',
    )


def parse_timestamp(raw_value: str) -> datetime:
    """Parse a timestamp written by :func:`format_timestamp`."""
    return datetime.fromisoformat(raw_value.replace('Z', '+00:00'))


@final
@dataclasses.dataclass(frozen=True, slots=True)
class File:
    """One uploaded file, owned by exactly one group.

    ``pathname`` is the blob key (``{group_id}/{filename}`` for
    server-relayed uploads) and ``url`` its public location.
    """

    name: str
    size: int
    url: str
    pathname: str

    @classmethod
    def from_dict(cls, raw_file: Mapping[str, Any]) -> Self:
        """Build a file record from its stored shape."""
        return cls(
            name=raw_file['name'],
            size=int(raw_file['size']),
            url=raw_file['url'],
            pathname=raw_file['pathname'],
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the stored shape of this file record."""
        return {
            'name': self.name,
            'size': self.size,
            'url': self.url,
            'pathname': self.pathname,
        }


@final
@dataclasses.dataclass(frozen=True, slots=True)
class Group:
    """A named "kelompok" of files uploaded together.

    ``total_size`` is derived from ``files``: use :meth:`create` or
    :meth:`with_files` so it is always recomputed.
    """

    id: str  # noqa: WPS125
    name: str
    uploaded_at: datetime
    files: tuple[File, ...]
    total_size: int

    @classmethod
    def create(
        cls,
        name: str,
        files: Iterable[File],
        uploaded_at: datetime,
        group_id: str | None = None,
    ) -> Self:
        """Build a new group with a fresh id and computed total size.

        Args:
            name: Human-readable label.
            files: File records, in display order.
            uploaded_at: Creation timestamp.
            group_id: Pre-generated id, a new UUID4 when omitted.

        Returns:
            New group.
        """
        file_records = tuple(files)
        return cls(
            id=group_id or str(uuid.uuid4()),
            name=name,
            uploaded_at=uploaded_at,
            files=file_records,
            total_size=sum_sizes(file_records),
        )

    @classmethod
    def from_dict(cls, raw_group: Mapping[str, Any]) -> Self:
        """Build a group from its stored shape.

        The stored ``totalSize`` is ignored and recomputed.
        """
        file_records = tuple(
            File.from_dict(raw_file) for raw_file in raw_group['files']
        )
        return cls(
            id=raw_group['id'],
            name=raw_group['name'],
            uploaded_at=parse_timestamp(raw_group['uploadedAt']),
            files=file_records,
            total_size=sum_sizes(file_records),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the stored (and API) shape of this group."""
        return {
            'id': self.id,
            'name': self.name,
            'uploadedAt': format_timestamp(self.uploaded_at),
            'files': [file_record.to_dict() for file_record in self.files],
            'totalSize': self.total_size,
        }

    def to_summary(self) -> dict[str, Any]:
        """Return the listing shape: no urls or blob keys."""
        return {
            'id': self.id,
            'name': self.name,
            'uploadedAt': format_timestamp(self.uploaded_at),
            'fileCount': len(self.files),
            'totalSize': self.total_size,
            'files': [
                {'name': file_record.name, 'size': file_record.size}
                for file_record in self.files
            ],
        }

    def with_files(self, files: Iterable[File]) -> Self:
        """Return a copy holding ``files`` with the total recomputed."""
        file_records = tuple(files)
        return dataclasses.replace(
            self,
            files=file_records,
            total_size=sum_sizes(file_records),
        )

    def find_file(self, filename: str) -> File | None:
        """Return the first file named ``filename``, in upload order.

        Duplicate names are allowed, the earliest one wins.
        """
        return next(
            (
                file_record
                for file_record in self.files
                if file_record.name == filename
            ),
            None,
        )

    def claims(self, pathname: str) -> bool:
        """Tell whether the blob key ``pathname`` belongs to this group.

        A group owns every key under ``{id}/`` and every key one of its
        files points at.
        """
        return pathname.startswith(f'{self.id}/') or any(
            file_record.pathname == pathname for file_record in self.files
        )


def sum_sizes(files: Iterable[File]) -> int:
    """Sum the sizes of ``files``."""
    return sum(file_record.size for file_record in files)
