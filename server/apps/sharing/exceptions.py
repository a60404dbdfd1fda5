"""Exceptions for sharing app."""

from django.core.exceptions import ValidationError


class SharingError(Exception):
    """Base class for failures of group and file operations."""


class GroupNotFoundError(SharingError):
    """Raised when no group has the requested id."""

    def __init__(self, group_id: str) -> None:
        """Initialize GroupNotFoundError.

        Args:
            group_id: The id that did not resolve to a group.
        """
        self.group_id = group_id
        super().__init__(f'Group not found: {group_id}')


class FileNotInGroupError(SharingError):
    """Raised when a group has no file with the requested name."""

    def __init__(self, group_id: str, filename: str) -> None:
        """Initialize FileNotInGroupError.

        Args:
            group_id: Id of the group that was searched.
            filename: The name that matched no file.
        """
        self.group_id = group_id
        self.filename = filename
        super().__init__(f'File not found in group {group_id}: {filename}')


class EmptyGroupError(SharingError):
    """Raised when an archive is requested for a group without files."""


class MetadataStoreError(SharingError):
    """Raised when the metadata store cannot be read or written."""


class BlobUploadError(SharingError):
    """Raised when at least one file of a batch failed to reach storage."""

    def __init__(self, failed: list[str]) -> None:
        """Initialize BlobUploadError.

        Args:
            failed: Names of the files whose upload failed.
        """
        self.failed = failed
        super().__init__(
            'Failed to upload {0} file(s): {1}'.format(
                len(failed),
                ', '.join(failed),
            ),
        )


class UploadTokenError(SharingError):
    """Raised when a direct-upload authorization cannot be issued."""


class NoFilesError(ValidationError):
    """Raised when an upload carries no files."""


class FileTooLargeError(ValidationError):
    """Raised when a file exceeds the per-file size ceiling."""

    def __init__(self, filename: str, size: int, limit: int) -> None:
        """Initialize FileTooLargeError.

        Args:
            filename: Name of the offending file.
            size: Its size in bytes.
            limit: The ceiling in bytes.
        """
        self.filename = filename
        self.size = size
        self.limit = limit
        super().__init__(
            f'File {filename} is {size} bytes, '
            f'the limit is {limit} bytes',
        )


class InvalidFileRecordError(ValidationError):
    """Raised when a pre-uploaded file record is malformed."""


class DirectUploadError(SharingError):
    """Raised when a browser-direct upload of one file fails."""

    def __init__(self, filename: str, reason: str) -> None:
        """Initialize DirectUploadError.

        Args:
            filename: Name of the file that failed.
            reason: Description of the failure.
        """
        self.filename = filename
        super().__init__(f'Failed to upload {filename}: {reason}')
