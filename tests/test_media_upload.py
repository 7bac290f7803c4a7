"""Unit tests for app.services.media_upload: signed Cloudinary upload, staging and cleanup."""

import asyncio
import hashlib
import os
import tempfile
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from pydantic import SecretStr

from app.core.errors import InvalidInputError
from app.services.media_upload import (
    MediaUploadError,
    _is_media_host_configured,
    _sign_params,
    discard_local_file,
    stage_upload,
    upload_on_media_host,
)


def _settings(**overrides: object) -> MagicMock:
    settings = MagicMock()
    settings.CLOUDINARY_CLOUD_NAME = "demo"
    settings.CLOUDINARY_API_KEY = "123456"
    settings.CLOUDINARY_API_SECRET = SecretStr("shh")
    settings.CLOUDINARY_FOLDER = None
    settings.CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1"
    settings.CLOUDINARY_REQUEST_TIMEOUT_SEC = 30.0
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def _response(status_code: int, body: dict | None = None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body or {}
    resp.text = text
    return resp


def _mock_client(mock_client_class: MagicMock, post: AsyncMock) -> None:
    instance = MagicMock()
    instance.post = post
    mock_client_class.return_value.__aenter__ = AsyncMock(return_value=instance)
    mock_client_class.return_value.__aexit__ = AsyncMock(return_value=None)


class UploadTestCase(unittest.TestCase):
    def setUp(self) -> None:
        fd, self.path = tempfile.mkstemp(suffix=".png")
        with os.fdopen(fd, "wb") as fh:
            fh.write(b"image-bytes")
        self.addCleanup(discard_local_file, self.path)


class TestSignature(unittest.TestCase):
    def test_signature_sorts_params_and_appends_secret(self) -> None:
        expected = hashlib.sha1(b"folder=avatars&timestamp=1700000000shh").hexdigest()
        self.assertEqual(
            _sign_params({"timestamp": 1700000000, "folder": "avatars"}, "shh"),
            expected,
        )

    def test_empty_params_are_skipped(self) -> None:
        self.assertEqual(
            _sign_params({"timestamp": 1, "folder": None}, "s"),
            _sign_params({"timestamp": 1}, "s"),
        )


class TestConfigured(unittest.TestCase):
    def test_configured(self) -> None:
        self.assertTrue(_is_media_host_configured(_settings()))

    def test_missing_secret(self) -> None:
        self.assertFalse(_is_media_host_configured(_settings(CLOUDINARY_API_SECRET=None)))

    def test_blank_cloud_name(self) -> None:
        self.assertFalse(_is_media_host_configured(_settings(CLOUDINARY_CLOUD_NAME=" ")))


class TestUploadOnMediaHost(UploadTestCase):
    @patch("app.services.media_upload.httpx.AsyncClient")
    def test_success_returns_secure_url(self, mock_client_class: MagicMock) -> None:
        post = AsyncMock(
            return_value=_response(
                200,
                {
                    "url": "http://res.cloudinary.com/demo/a.png",
                    "secure_url": "https://res.cloudinary.com/demo/a.png",
                    "public_id": "a",
                    "resource_type": "image",
                    "bytes": 11,
                },
            )
        )
        _mock_client(mock_client_class, post)

        result = asyncio.run(
            upload_on_media_host(self.path, _settings(CLOUDINARY_FOLDER="avatars"))
        )

        self.assertEqual(result.url, "https://res.cloudinary.com/demo/a.png")
        self.assertEqual(result.public_id, "a")
        post.assert_awaited_once()
        url = post.call_args[0][0]
        self.assertEqual(url, "https://api.cloudinary.com/v1_1/demo/auto/upload")
        form = post.call_args[1]["data"]
        self.assertEqual(form["api_key"], "123456")
        self.assertEqual(form["folder"], "avatars")
        self.assertEqual(
            form["signature"],
            _sign_params({"timestamp": form["timestamp"], "folder": "avatars"}, "shh"),
        )
        name, content = post.call_args[1]["files"]["file"]
        self.assertEqual(content, b"image-bytes")
        self.assertTrue(name.endswith(".png"))
        # The caller owns the local file.
        self.assertTrue(os.path.exists(self.path))

    @patch("app.services.media_upload.httpx.AsyncClient")
    def test_falls_back_to_url(self, mock_client_class: MagicMock) -> None:
        _mock_client(
            mock_client_class,
            AsyncMock(return_value=_response(200, {"url": "http://res.cloudinary.com/demo/a.png"})),
        )
        result = asyncio.run(upload_on_media_host(self.path, _settings()))
        self.assertEqual(result.url, "http://res.cloudinary.com/demo/a.png")

    @patch("app.services.media_upload.httpx.AsyncClient")
    def test_error_status_raises(self, mock_client_class: MagicMock) -> None:
        _mock_client(
            mock_client_class,
            AsyncMock(return_value=_response(400, {"error": {"message": "Invalid image file"}})),
        )
        with self.assertRaises(MediaUploadError) as ctx:
            asyncio.run(upload_on_media_host(self.path, _settings()))
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertIn("Invalid image file", ctx.exception.message)

    @patch("app.services.media_upload.httpx.AsyncClient")
    def test_auth_failure_raises(self, mock_client_class: MagicMock) -> None:
        _mock_client(mock_client_class, AsyncMock(return_value=_response(401)))
        with self.assertRaises(MediaUploadError) as ctx:
            asyncio.run(upload_on_media_host(self.path, _settings()))
        self.assertEqual(ctx.exception.status_code, 401)

    @patch("app.services.media_upload.httpx.AsyncClient")
    def test_missing_url_raises(self, mock_client_class: MagicMock) -> None:
        _mock_client(mock_client_class, AsyncMock(return_value=_response(200, {"public_id": "a"})))
        with self.assertRaises(MediaUploadError) as ctx:
            asyncio.run(upload_on_media_host(self.path, _settings()))
        self.assertIn("missing file URL", ctx.exception.message)

    @patch("app.services.media_upload.httpx.AsyncClient")
    def test_transport_error_raises(self, mock_client_class: MagicMock) -> None:
        _mock_client(
            mock_client_class,
            AsyncMock(side_effect=httpx.ConnectError("connection refused")),
        )
        with self.assertRaises(MediaUploadError) as ctx:
            asyncio.run(upload_on_media_host(self.path, _settings()))
        self.assertIn("unreachable", ctx.exception.message)

    def test_not_configured_raises(self) -> None:
        with self.assertRaises(MediaUploadError) as ctx:
            asyncio.run(upload_on_media_host(self.path, _settings(CLOUDINARY_API_KEY="")))
        self.assertIn("not configured", ctx.exception.message)

    def test_missing_local_file_raises(self) -> None:
        with self.assertRaises(MediaUploadError):
            asyncio.run(upload_on_media_host("/nonexistent/file.png", _settings()))


class TestStageUpload(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp_dir = tempfile.mkdtemp()
        self.settings = MagicMock()
        self.settings.UPLOAD_TMP_DIR = os.path.join(self.tmp_dir, "temp")
        self.settings.MAX_UPLOAD_FILE_BYTES = 16

    def _upload(self, filename: str | None, content: bytes) -> MagicMock:
        upload = MagicMock()
        upload.filename = filename
        upload.read = AsyncMock(return_value=content)
        return upload

    def test_writes_file_and_keeps_extension(self) -> None:
        path = asyncio.run(stage_upload(self._upload("Me.PNG", b"abc"), self.settings))
        self.assertTrue(path.endswith(".png"))
        with open(path, "rb") as fh:
            self.assertEqual(fh.read(), b"abc")
        discard_local_file(path)
        self.assertFalse(os.path.exists(path))

    def test_no_file_returns_none(self) -> None:
        self.assertIsNone(asyncio.run(stage_upload(None, self.settings)))
        self.assertIsNone(asyncio.run(stage_upload(self._upload("", b"abc"), self.settings)))
        self.assertIsNone(asyncio.run(stage_upload(self._upload("a.png", b""), self.settings)))

    def test_too_large_is_invalid(self) -> None:
        with self.assertRaises(InvalidInputError):
            asyncio.run(stage_upload(self._upload("a.png", b"x" * 17), self.settings))

    def test_discard_missing_file_is_noop(self) -> None:
        discard_local_file(os.path.join(self.tmp_dir, "missing.png"))
        discard_local_file(None)


if __name__ == "__main__":
    unittest.main()
