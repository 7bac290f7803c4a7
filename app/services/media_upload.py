"""Media host integration: stage incoming files locally, then push them to Cloudinary.

Uploads go to Cloudinary's REST upload endpoint. Requests are signed with
Cloudinary's documented scheme: SHA-1 over the sorted, &-joined upload
parameters with the API secret appended (see "Generating authentication
signatures" in the Cloudinary upload API reference).
"""

from __future__ import annotations

import hashlib
import logging
import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
from fastapi import UploadFile

from app.core.errors import InvalidInputError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Let the media host detect image/video/raw from the content.
RESOURCE_TYPE = "auto"


class MediaUploadError(Exception):
    """Raised when the media host is not configured, unreachable, or rejects the file."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class MediaUploadResult:
    """Hosted file returned by the media host."""

    url: str
    public_id: str | None = None
    resource_type: str | None = None
    bytes: int | None = None


def _is_media_host_configured(settings: Settings) -> bool:
    if not settings.CLOUDINARY_CLOUD_NAME or not settings.CLOUDINARY_CLOUD_NAME.strip():
        return False
    if not settings.CLOUDINARY_API_KEY or not settings.CLOUDINARY_API_KEY.strip():
        return False
    if settings.CLOUDINARY_API_SECRET is None:
        return False
    secret = settings.CLOUDINARY_API_SECRET.get_secret_value()
    return bool(secret and secret.strip())


def _sign_params(params: dict[str, Any], api_secret: str) -> str:
    """Cloudinary signature: SHA-1 of the sorted, &-joined params followed by the API secret."""
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
        error = body.get("error") or {}
        detail = error.get("message") if isinstance(error, dict) else str(error)
    except Exception:
        detail = None
    return (detail or resp.text or "Unknown error")[:500]


async def upload_on_media_host(local_path: str, settings: Settings) -> MediaUploadResult:
    """
    Upload one local file to the media host and return its hosted URL.

    Raises MediaUploadError on missing configuration, a missing local file,
    transport errors, non-2xx responses or a response without a URL. The
    local file is left in place; the caller decides when to discard it.
    """
    if not local_path:
        raise MediaUploadError("No local file path given.")
    if not _is_media_host_configured(settings):
        raise MediaUploadError(
            "Media host is not configured; set CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET."
        )
    path = Path(local_path)
    if not path.is_file():
        raise MediaUploadError(f"Local file not found: {path.name}")

    cloud_name = (settings.CLOUDINARY_CLOUD_NAME or "").strip()
    api_key = (settings.CLOUDINARY_API_KEY or "").strip()
    api_secret = settings.CLOUDINARY_API_SECRET.get_secret_value()  # type: ignore[union-attr]
    params: dict[str, Any] = {"timestamp": int(time.time())}
    if settings.CLOUDINARY_FOLDER and settings.CLOUDINARY_FOLDER.strip():
        params["folder"] = settings.CLOUDINARY_FOLDER.strip()
    form = {key: str(value) for key, value in params.items()}
    form["api_key"] = api_key
    form["signature"] = _sign_params(params, api_secret)

    url = f"{settings.CLOUDINARY_UPLOAD_URL.rstrip('/')}/{cloud_name}/{RESOURCE_TYPE}/upload"
    timeout = max(1.0, min(300.0, settings.CLOUDINARY_REQUEST_TIMEOUT_SEC))
    content = path.read_bytes()

    try:
        async with httpx.AsyncClient() as client:
            resp = await client.post(
                url,
                data=form,
                files={"file": (path.name, content)},
                timeout=timeout,
            )
    except httpx.TimeoutException as e:
        raise MediaUploadError(f"Media host timed out after {timeout}s") from e
    except httpx.HTTPError as e:
        raise MediaUploadError(f"Media host unreachable: {e!s}") from e

    if resp.status_code == 401:
        raise MediaUploadError("Media host authentication failed (check API key/secret).", 401)
    if resp.status_code >= 400:
        raise MediaUploadError(
            f"Media host returned {resp.status_code}: {_error_detail(resp)}",
            resp.status_code,
        )
    try:
        data = resp.json()
    except ValueError as e:
        raise MediaUploadError("Media host returned a non-JSON response.") from e
    hosted_url = data.get("secure_url") or data.get("url")
    if not hosted_url:
        raise MediaUploadError("Media host response missing file URL.")

    logger.info(
        "File uploaded to media host",
        extra={"public_id": data.get("public_id"), "bytes": data.get("bytes")},
    )
    return MediaUploadResult(
        url=hosted_url,
        public_id=data.get("public_id"),
        resource_type=data.get("resource_type"),
        bytes=data.get("bytes"),
    )


async def stage_upload(upload: UploadFile | None, settings: Settings) -> str | None:
    """
    Write an incoming multipart file to UPLOAD_TMP_DIR and return its local path.

    Returns None when no file (or an empty file) was sent. Raises
    InvalidInputError when the file exceeds MAX_UPLOAD_FILE_BYTES.
    """
    if upload is None or not upload.filename:
        return None
    content = await upload.read()
    if not content:
        return None
    if len(content) > settings.MAX_UPLOAD_FILE_BYTES:
        raise InvalidInputError(
            f"File size must not exceed {settings.MAX_UPLOAD_FILE_BYTES // (1024 * 1024)} MB."
        )
    tmp_dir = Path(settings.UPLOAD_TMP_DIR)
    tmp_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename).suffix.lower()[:16]
    local_path = tmp_dir / f"{uuid.uuid4().hex}{suffix}"
    local_path.write_bytes(content)
    return str(local_path)


def discard_local_file(local_path: str | None) -> None:
    """Remove a staged temp file; missing files are ignored."""
    if not local_path:
        return
    try:
        os.remove(local_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove temp file %s: %s", local_path, e)
