"""Tests for the shared HTTP helpers."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from common.http_client import HttpError, download_file, get_json, robust_get
from common.logging_utils import safe_url


def response(status, text="", chunks=None):
    mock = MagicMock()
    mock.status_code = status
    mock.text = text
    mock.headers = {"Content-Type": "application/json"}
    mock.iter_content.return_value = chunks or []
    return mock


class TestRobustGet:
    """Test retry policy."""

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_success(self, mock_get, mock_sleep):
        mock_get.return_value = response(200, "ok")

        status, headers, text = robust_get("https://example.test/a")

        assert (status, text) == (200, "ok")
        assert headers["Content-Type"] == "application/json"
        mock_sleep.assert_not_called()

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_client_error_not_retried(self, mock_get, mock_sleep):
        mock_get.return_value = response(404)

        status, _, _ = robust_get("https://example.test/a")

        assert status == 404
        assert mock_get.call_count == 1
        mock_sleep.assert_not_called()

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_server_error_retried_then_succeeds(self, mock_get, mock_sleep):
        mock_get.side_effect = [response(503), response(200, "ok")]

        status, _, text = robust_get("https://example.test/a")

        assert (status, text) == (200, "ok")
        assert mock_get.call_count == 2
        mock_sleep.assert_called_once_with(pytest.approx(0.3))

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_persistent_server_error_returns_last_status(self, mock_get, mock_sleep):
        mock_get.return_value = response(502)

        status, _, _ = robust_get("https://example.test/a")

        assert status == 502
        assert mock_get.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [pytest.approx(0.3), pytest.approx(0.6)]

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_transport_failure(self, mock_get, mock_sleep):
        mock_get.side_effect = requests.ConnectionError("refused")

        status, headers, text = robust_get("https://example.test/a")

        assert status == 0
        assert headers == {}
        assert "refused" in text
        assert mock_get.call_count == 3


class TestGetJson:
    """Test JSON decoding."""

    @patch("common.http_client.requests.get")
    def test_decodes(self, mock_get):
        mock_get.return_value = response(200, '{"revision": "abc"}')

        assert get_json("https://example.test/latest")[2] == {"revision": "abc"}
        assert mock_get.call_args.kwargs["headers"]["Accept"] == "application/json"

    @patch("common.http_client.requests.get")
    def test_invalid_json(self, mock_get):
        mock_get.return_value = response(200, "<html>")

        assert get_json("https://example.test/latest") == (200, {"Content-Type": "application/json"}, None)

    @patch("common.http_client.requests.get")
    def test_non_200(self, mock_get):
        mock_get.return_value = response(404, '{"errors": []}')

        assert get_json("https://example.test/latest")[0::2] == (404, None)


class TestDownloadFile:
    """Test streamed downloads."""

    @patch("common.http_client.requests.get")
    def test_writes_chunks(self, mock_get, tmp_path):
        mock_get.return_value = response(200, chunks=[b"abc", b"", b"def"])
        target = tmp_path / "nested" / "pkg.tgz"

        download_file("https://example.test/pkg.tgz", str(target))

        assert target.read_bytes() == b"abcdef"
        assert mock_get.call_args.kwargs["stream"] is True

    @patch("common.http_client.requests.get")
    def test_http_error(self, mock_get, tmp_path):
        mock_get.return_value = response(403)

        with pytest.raises(HttpError) as excinfo:
            download_file("https://example.test/pkg.tgz", str(tmp_path / "pkg.tgz"))
        assert excinfo.value.status_code == 403
        assert not (tmp_path / "pkg.tgz").exists()

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_interrupted_stream_is_restarted(self, mock_get, mock_sleep, tmp_path):
        broken = response(200)
        broken.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("connection reset")
        mock_get.side_effect = [broken, response(200, chunks=[b"complete"])]
        target = tmp_path / "pkg.tgz"

        download_file("https://example.test/pkg.tgz", str(target))

        assert target.read_bytes() == b"complete"
        assert mock_get.call_count == 2
        mock_sleep.assert_called_once_with(pytest.approx(0.3))

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_interrupted_stream_gives_up(self, mock_get, mock_sleep, tmp_path):
        def broken_response(*args, **kwargs):
            mock = response(200)
            mock.iter_content.side_effect = requests.ConnectionError("connection reset")
            return mock
        mock_get.side_effect = broken_response
        target = tmp_path / "pkg.tgz"

        with pytest.raises(HttpError) as excinfo:
            download_file("https://example.test/pkg.tgz", str(target))

        assert excinfo.value.status_code == 0
        assert "connection reset" in str(excinfo.value)
        assert mock_get.call_count == 3
        assert not target.exists()


class TestSafeUrl:
    """Test URL redaction for logs."""

    def test_redacts_credentials_and_tokens(self):
        redacted = safe_url("https://user:pw@example.test/path?token=abc&q=zlib")

        assert redacted == "https://example.test/path?token=***&q=zlib"
