"""Tests for share_files management command."""

from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from server.apps.sharing.exceptions import DirectUploadError
from server.apps.sharing.logic.direct_upload import DirectUploader

_BASE_URL = 'https://snapaja.example'


@pytest.fixture
def local_file(tmp_path):
    """One small local file."""
    path = tmp_path / 'a.txt'
    path.write_bytes(b'alpha')
    return path


class TestShareFilesCommand:
    """Tests for share_files management command."""

    def test_share_files(self, local_file, monkeypatch):
        """Test a successful upload reports the created group."""
        calls = []

        def fake_upload(self, paths, group_name=None, on_change=None):
            calls.append((self.base_url, list(paths), group_name))
            return {'id': 'new-group', 'name': 'Tugas', 'files': [{}]}

        monkeypatch.setattr(DirectUploader, 'upload', fake_upload)

        out = StringIO()
        call_command(
            'share_files',
            _BASE_URL,
            str(local_file),
            '--group-name=Tugas',
            stdout=out,
        )

        assert calls == [(_BASE_URL, [local_file], 'Tugas')]
        assert 'Created group new-group (Tugas) with 1 files' in out.getvalue()

    def test_share_missing_file(self, tmp_path):
        """Test missing local files are rejected before uploading."""
        with pytest.raises(CommandError, match='Not a file'):
            call_command(
                'share_files',
                _BASE_URL,
                str(tmp_path / 'missing.txt'),
                stdout=StringIO(),
            )

    def test_share_upload_failure(self, local_file, monkeypatch):
        """Test a failed upload becomes a command error."""
        def failing_upload(self, paths, group_name=None, on_change=None):
            raise DirectUploadError('a.txt', '403 error')

        monkeypatch.setattr(DirectUploader, 'upload', failing_upload)

        with pytest.raises(CommandError, match='a.txt'):
            call_command(
                'share_files',
                _BASE_URL,
                str(local_file),
                stdout=StringIO(),
            )
