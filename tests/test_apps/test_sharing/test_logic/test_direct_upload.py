"""Tests for the browser-direct upload client."""

import re
from unittest.mock import Mock

import pytest
import requests

from server.apps.sharing.exceptions import DirectUploadError
from server.apps.sharing.logic.direct_upload import (
    DirectUploader,
    UploadStatus,
    make_group_prefix,
)

_BASE_URL = 'https://snapaja.example'
_BUCKET_URL = 'https://snapaja.s3.amazonaws.com/'


def _response(payload=None, status_code=200) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f'{status_code} error',
        )
    return response


def _fake_session(fail_on: str | None = None) -> Mock:
    """Session answering token, bucket and group creation requests."""
    session = Mock(spec=requests.Session)

    def post(url, json=None, data=None, files=None, timeout=None):
        if url.endswith('/upload/token'):
            pathname = json['pathname']
            return _response({
                'url': _BUCKET_URL,
                'fields': {'key': pathname},
                'pathname': pathname,
                'blobUrl': f'{_BUCKET_URL}{pathname}',
            })
        if url == _BUCKET_URL:
            filename = files['file'][0]
            return _response(status_code=403 if filename == fail_on else 204)
        return _response({'success': True, 'group': {'id': 'new-group', **json}})

    session.post.side_effect = post
    return session


@pytest.fixture
def local_files(tmp_path):
    """Three small local files."""
    paths = []
    for name, content in (('a.txt', b'alpha'), ('b.txt', b'bravo'), ('c.txt', b'c')):
        path = tmp_path / name
        path.write_bytes(content)
        paths.append(path)
    return paths


def _posted_urls(session: Mock) -> list[str]:
    return [call.args[0] for call in session.post.call_args_list]


def test_make_group_prefix():
    """Test prefixes carry a timestamp and a random suffix."""
    prefix = make_group_prefix()

    assert re.fullmatch('group_[0-9]+_[0-9a-f]{9}', prefix)
    assert prefix != make_group_prefix()


def test_upload_creates_group(local_files):
    """Test every file is stored before the group is created."""
    session = _fake_session()
    changes = []
    uploader = DirectUploader(_BASE_URL, session=session)

    group = uploader.upload(
        local_files,
        group_name='Tugas Kuliah',
        on_change=lambda tracked: changes.append((tracked.name, tracked.status)),
    )

    assert group['id'] == 'new-group'
    assert group['groupName'] == 'Tugas Kuliah'
    assert [record['name'] for record in group['files']] == [
        'a.txt',
        'b.txt',
        'c.txt',
    ]
    assert group['files'][0]['size'] == 5
    assert group['files'][0]['pathname'].endswith('/a.txt')
    assert all(
        tracked.status == UploadStatus.COMPLETED for tracked in uploader.files
    )
    assert changes[:2] == [
        ('a.txt', UploadStatus.UPLOADING),
        ('a.txt', UploadStatus.COMPLETED),
    ]
    assert _posted_urls(session)[-1] == f'{_BASE_URL}/groups/create'


def test_upload_files_share_prefix(local_files):
    """Test all files of one upload land under the same prefix."""
    session = _fake_session()

    group = DirectUploader(_BASE_URL, session=session).upload(local_files)

    prefixes = {record['pathname'].split('/')[0] for record in group['files']}
    assert len(prefixes) == 1
    assert group['groupName'] == ''


def test_upload_failure_stops_before_group(local_files):
    """Test a failed file aborts the upload and creates no group."""
    session = _fake_session(fail_on='b.txt')
    uploader = DirectUploader(_BASE_URL, session=session)

    with pytest.raises(DirectUploadError) as exc_info:
        uploader.upload(local_files)

    assert exc_info.value.filename == 'b.txt'
    assert [tracked.status for tracked in uploader.files] == [
        UploadStatus.COMPLETED,
        UploadStatus.ERROR,
        UploadStatus.PENDING,
    ]
    assert f'{_BASE_URL}/groups/create' not in _posted_urls(session)


def test_upload_missing_local_file(tmp_path):
    """Test an unreadable local file is reported as a failed upload."""
    session = _fake_session()
    uploader = DirectUploader(_BASE_URL, session=session)

    with pytest.raises(DirectUploadError):
        uploader.upload([tmp_path / 'missing.txt'])

    assert uploader.files[0].status == UploadStatus.ERROR
