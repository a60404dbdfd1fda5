"""HTTP handlers of the sharing API.

Handlers translate requests into group operations and map domain
errors to JSON responses: not-found to 404, validation to 400 and
everything else to 500.
"""

import json
import logging
from typing import Any

from django.http import (
    HttpRequest,
    HttpResponse,
    JsonResponse,
    StreamingHttpResponse,
)
from django.utils.http import content_disposition_header
from django.views.decorators.http import (
    require_GET,
    require_http_methods,
    require_POST,
)

from server.apps.sharing.exceptions import (
    EmptyGroupError,
    FileNotInGroupError,
    FileTooLargeError,
    GroupNotFoundError,
    InvalidFileRecordError,
    MetadataStoreError,
    NoFilesError,
    UploadTokenError,
)
from server.apps.sharing.infrastructure.tokens import issue_upload_token
from server.apps.sharing.logic import group_operations
from server.apps.sharing.logic.cleanup_operations import remove_group
from server.apps.sharing.logic.download_operations import (
    open_file,
    prepare_archive,
)
from server.apps.sharing.logic.upload_operations import (
    finalize_direct_upload,
    upload_files,
)

logger = logging.getLogger(__name__)

_CACHE_CONTROL = 'public, max-age=3600'
_GROUP_NOT_FOUND = 'Group not found'


def _error(status: int, error: str, message: str | None = None) -> JsonResponse:
    body: dict[str, Any] = {'error': error}
    if message is not None:
        body['message'] = message
    return JsonResponse(body, status=status)


def _read_json(request: HttpRequest) -> dict[str, Any]:
    """Decode a JSON object request body.

    Raises:
        ValueError: If the body is not a JSON object.
    """
    payload = json.loads(request.body or b'{}')
    if not isinstance(payload, dict):
        raise ValueError('Request body must be a JSON object')
    return payload


@require_GET
def list_groups(request: HttpRequest) -> JsonResponse:
    """List every group without file urls."""
    try:
        groups = group_operations.get_all_groups()
    except Exception:
        logger.exception('Failed to fetch groups')
        return _error(500, 'Failed to fetch groups')
    return JsonResponse({'groups': [group.to_summary() for group in groups]})


@require_POST
def upload(request: HttpRequest) -> JsonResponse:
    """Create a new group from a multipart upload.

    Form fields: ``groupName`` (optional) and ``files`` (repeated).
    """
    payloads = request.FILES.getlist('files')
    try:
        group = upload_files(
            payloads,
            group_name=request.POST.get('groupName'),
        )
    except (NoFilesError, FileTooLargeError) as exc:
        return _error(400, exc.message)
    except Exception as exc:
        logger.exception('Upload failed')
        return _error(500, 'Upload failed', str(exc))
    return JsonResponse({'success': True, 'group': group.to_dict()})


@require_POST
def upload_to_group(request: HttpRequest, group_id: str) -> JsonResponse:
    """Append the files of a multipart upload to an existing group."""
    # Checked before the body is parsed
    if group_operations.get_group(group_id) is None:
        return _error(404, _GROUP_NOT_FOUND)

    payloads = request.FILES.getlist('files')
    try:
        group = upload_files(payloads, group_id=group_id)
    except GroupNotFoundError:
        return _error(404, _GROUP_NOT_FOUND)
    except (NoFilesError, FileTooLargeError) as exc:
        return _error(400, exc.message)
    except Exception as exc:
        logger.exception('Failed to add files to group %s', group_id)
        return _error(500, 'Failed to add files', str(exc))
    return JsonResponse({'success': True, 'group': group.to_dict()})


@require_POST
def upload_token(request: HttpRequest) -> JsonResponse:
    """Issue a browser-direct upload authorization for one pathname."""
    try:
        payload = _read_json(request)
        token = issue_upload_token(payload.get('pathname', ''))
    except (ValueError, UploadTokenError) as exc:
        logger.warning('Upload token refused: %s', exc)
        return _error(400, str(exc) or 'Failed to generate upload token')
    except MetadataStoreError:
        logger.exception('Failed to generate upload token')
        return _error(500, 'Failed to generate upload token')
    return JsonResponse(token)


@require_POST
def create_group(request: HttpRequest) -> JsonResponse:
    """Record a group whose files were uploaded browser-direct.

    Body: ``{"groupName": str, "files": [{name, size, url, pathname}]}``.
    """
    try:
        payload = _read_json(request)
    except ValueError as exc:
        return _error(400, str(exc))

    try:
        group = finalize_direct_upload(
            payload.get('groupName'),
            payload.get('files') or [],
        )
    except (NoFilesError, InvalidFileRecordError) as exc:
        return _error(400, exc.message)
    except Exception as exc:
        logger.exception('Failed to create group')
        return _error(500, 'Failed to create group', str(exc))
    return JsonResponse({'success': True, 'group': group.to_dict()})


@require_GET
def download_file(
    request: HttpRequest,
    group_id: str,
    filename: str,
) -> HttpResponse:
    """Send one file of a group as an attachment."""
    logger.info('Download of %s requested from group %s', filename, group_id)
    try:
        download = open_file(group_id, filename)
    except GroupNotFoundError:
        return _error(404, _GROUP_NOT_FOUND)
    except FileNotInGroupError:
        return _error(404, 'File not found')
    except Exception:
        logger.exception('Download failed: %s/%s', group_id, filename)
        return _error(500, 'Download failed')

    response = HttpResponse(download.content, content_type=download.content_type)
    response['Content-Disposition'] = content_disposition_header(
        as_attachment=True,
        filename=download.name,
    )
    response['Content-Length'] = download.size
    response['Cache-Control'] = _CACHE_CONTROL
    return response


@require_GET
def download_all(request: HttpRequest, group_id: str) -> HttpResponse:
    """Stream every file of a group as an uncompressed ZIP archive.

    Errors are reported as JSON only until streaming starts; a failure
    after that aborts the connection and leaves a truncated archive.
    """
    logger.info('Archive requested for group %s', group_id)
    try:
        archive = prepare_archive(group_id)
    except GroupNotFoundError:
        return _error(404, _GROUP_NOT_FOUND)
    except EmptyGroupError:
        return _error(404, 'No files in group')
    except Exception:
        logger.exception('Archive download failed for group %s', group_id)
        return _error(500, 'Download failed')

    response = StreamingHttpResponse(
        archive.chunks,
        content_type='application/zip',
    )
    response['Content-Disposition'] = 'attachment; filename="{0}"'.format(
        archive.filename,
    )
    return response


@require_http_methods(['DELETE'])
def delete_group(request: HttpRequest, group_id: str) -> JsonResponse:
    """Delete a group together with all of its stored files."""
    try:
        remove_group(group_id)
    except GroupNotFoundError:
        return _error(404, _GROUP_NOT_FOUND)
    except Exception:
        logger.exception('Failed to delete group %s', group_id)
        return _error(500, 'Failed to delete group')
    return JsonResponse({'success': True, 'message': 'Group deleted'})
