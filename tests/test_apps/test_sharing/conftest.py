"""Shared fixtures for sharing app tests."""

from collections.abc import Callable
from datetime import UTC, datetime

import boto3
import pytest
from django.core.cache import caches
from moto import mock_aws

from server.apps.sharing.logic.group_operations import create_group
from server.apps.sharing.models import File, Group

BUCKET = 'snapaja-test'


@pytest.fixture(autouse=True)
def _sharing_settings(settings):
    """Point the metadata store and blob storage at test backends.

    The metadata store is a local-memory cache, emptied after each test.
    """
    settings.CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        },
        'metadata': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'sharing-metadata-tests',
            'TIMEOUT': None,
        },
    }
    settings.STORAGES = {
        'default': {
            'BACKEND': 'server.apps.sharing.infrastructure.storage.BlobStorage',
            'OPTIONS': {
                'bucket_name': BUCKET,
                'access_key': 'testing',
                'secret_key': 'testing',
                'region_name': 'us-east-1',
                'querystring_auth': False,
                'file_overwrite': True,
                'default_acl': None,
            },
        },
        'staticfiles': {
            'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
        },
    }
    yield
    caches['metadata'].clear()


@pytest.fixture
def mock_s3():
    """Mock S3 service with the test bucket.

    Yields:
        boto3 S3 resource with the test bucket created.
    """
    with mock_aws():
        # Create S3 resource
        conn = boto3.resource('s3', region_name='us-east-1')

        # Create bucket
        conn.create_bucket(Bucket=BUCKET)

        yield conn


@pytest.fixture
def put_blob(mock_s3) -> Callable[..., File]:
    """Store bytes in the mocked bucket and describe them as a file.

    Returns:
        Factory taking key, content and optional content type and name.
    """
    def factory(
        key: str,
        content: bytes,
        content_type: str = 'text/plain',
        name: str | None = None,
    ) -> File:
        mock_s3.Object(BUCKET, key).put(Body=content, ContentType=content_type)
        return File(
            name=name or key.rsplit('/', 1)[-1],
            size=len(content),
            url=f'https://{BUCKET}.s3.amazonaws.com/{key}',
            pathname=key,
        )

    return factory


@pytest.fixture
def stored_group(put_blob) -> Callable[..., Group]:
    """Create a group whose files exist in the mocked bucket.

    Returns:
        Factory taking a mapping of filename to content and a name.
    """
    def factory(
        contents: dict[str, bytes],
        name: str = 'Foto Liburan',
        group_id: str = 'group-1',
    ) -> Group:
        files = [
            put_blob(f'{group_id}/{filename}', content)
            for filename, content in contents.items()
        ]
        group = Group.create(
            name=name,
            files=files,
            uploaded_at=datetime(2026, 10, 19, 8, 30, tzinfo=UTC),
            group_id=group_id,
        )
        return create_group(group)

    return factory


@pytest.fixture
def make_file() -> Callable[..., File]:
    """Build file records without storing any bytes.

    Returns:
        Factory taking name, size and optional group id.
    """
    return _make_file


def _make_file(name: str, size: int, group_id: str = 'group-1') -> File:
    return File(
        name=name,
        size=size,
        url=f'https://{BUCKET}.s3.amazonaws.com/{group_id}/{name}',
        pathname=f'{group_id}/{name}',
    )
