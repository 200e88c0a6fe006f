# SPDX-License-Identifier: MIT
"""File upload to the fal.ai CDN.

Two protocols, selected by FAL_UPLOAD_PROTOCOL:

- ``two_phase`` (default): authenticated POST to the initiate endpoint returns
  ``upload_url`` and ``file_url``; the bytes are then PUT, unauthenticated, to
  ``upload_url``. The reported URL is ``file_url`` from the first phase.
- ``multipart``: a single authenticated multipart/form-data POST.

The file is read fully into memory; uploads are not streamed or retried.
"""

import pathlib
from typing import Any

import aiofiles

from ..client import FalClient, get_client
from ..config import logger
from ..errors import HttpError, UploadError, ValidationError
from ..types import UploadResult

MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "pdf": "application/pdf",
    "json": "application/json",
    "txt": "text/plain",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"
STORAGE_TYPE = "fal-cdn-v3"


def detect_content_type(file_path: str) -> str:
    """Map the lowercased file extension to a MIME type."""
    name = pathlib.PurePath(file_path).name
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return MIME_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


async def _read_file(file_path: str) -> tuple[bytes, str]:
    path = pathlib.Path(file_path).expanduser()
    if not path.is_file():
        raise ValidationError(f"File not found: {file_path}")
    async with aiofiles.open(path, "rb") as f:
        content = await f.read()
    return content, path.name


async def _upload_two_phase(client: FalClient, content: bytes, file_name: str, content_type: str) -> str:
    initiate_url = f"{client.settings.storage_url}/storage/upload/initiate"
    try:
        ticket = await client.send_json(
            "POST",
            initiate_url,
            {"content_type": content_type, "file_name": file_name},
            params={"storage_type": STORAGE_TYPE},
        )
    except HttpError as e:
        raise UploadError(1, e.status, e.body) from e

    upload_url = ticket.get("upload_url") if isinstance(ticket, dict) else None
    file_url = ticket.get("file_url") if isinstance(ticket, dict) else None
    if not upload_url or not file_url:
        raise UploadError(1, 200, f"Initiate response missing upload_url/file_url: {ticket}")

    try:
        await client.put_bytes(upload_url, content, content_type)
    except HttpError as e:
        raise UploadError(2, e.status, e.body) from e
    return file_url


async def _upload_multipart(client: FalClient, content: bytes, file_name: str, content_type: str) -> str:
    try:
        data: Any = await client.post_multipart(
            f"{client.settings.storage_url}/storage/upload",
            field="file",
            filename=file_name,
            content=content,
            content_type=content_type,
        )
    except HttpError as e:
        raise UploadError(1, e.status, e.body) from e

    url = None
    if isinstance(data, dict):
        url = data.get("url") or data.get("file_url") or data.get("access_url")
    if not url:
        raise UploadError(1, 200, f"Upload response missing url: {data}")
    return url


async def upload_file(file_path: str, content_type: str | None = None) -> UploadResult:
    """Upload a local file to the fal.ai CDN.

    Args:
        file_path: Path to the local file
        content_type: MIME type; detected from the extension when omitted

    Returns:
        UploadResult with the CDN url, content_type, size and file_name

    Raises:
        ValidationError: If the file does not exist
        ConfigurationError: If FAL_KEY not set
        UploadError: If either upload phase returns a non-2xx status
    """
    content_type = content_type or detect_content_type(file_path)
    content, file_name = await _read_file(file_path)

    async with get_client() as client:
        client.settings.require_api_key()
        protocol = client.settings.upload_protocol
        if protocol == "multipart":
            url = await _upload_multipart(client, content, file_name, content_type)
        else:
            url = await _upload_two_phase(client, content, file_name, content_type)

    logger.info("Uploaded %s (%d bytes, %s) via %s -> %s", file_name, len(content), content_type, protocol, url)
    return {"url": url, "content_type": content_type, "size": len(content), "file_name": file_name}
