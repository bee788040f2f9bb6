"""
Tests for remote content acquisition.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

from oval_runner.errors import DocumentImportError
from oval_runner.integrations.fetch import acquire_content, display_name, is_url

URL = "https://example.org/content/com.example.oval.xml"


def _response(*chunks):
    response = MagicMock()
    response.iter_bytes.return_value = list(chunks)
    return response


class TestAcquireContent:
    """Tests for acquire_content."""

    def test_names(self):
        assert is_url(URL)
        assert not is_url("/tmp/defs.xml")
        assert display_name(URL) == "com.example.oval.xml"
        assert display_name("https://example.org") == "example.org"
        assert display_name(Path("content") / "defs.xml") == "defs.xml"

    def test_local_path(self, definitions_file):
        with patch("httpx.stream") as stream:
            with acquire_content(str(definitions_file)) as path:
                assert path == definitions_file

        stream.assert_not_called()

    @pytest.mark.network
    def test_download(self):
        """Downloaded content lives in a temporary file for the block only."""
        with patch("httpx.stream") as stream:
            stream.return_value.__enter__.return_value = _response(b"<oval_", b"definitions/>")

            with acquire_content(URL, timeout=5.0) as path:
                assert path.read_bytes() == b"<oval_definitions/>"
                assert path.suffix == ".xml"

        stream.assert_called_once_with("GET", URL, timeout=5.0, follow_redirects=True)
        assert not path.exists()

    @pytest.mark.network
    def test_download_failure(self):
        with patch("httpx.stream", side_effect=httpx.ConnectError("connection refused")):
            with pytest.raises(DocumentImportError) as exc_info:
                with acquire_content(URL):
                    pass

        assert exc_info.value.path == URL
        assert "connection refused" in exc_info.value.description

    @pytest.mark.network
    def test_http_status_error(self):
        request = httpx.Request("GET", URL)
        response = _response()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "404 Not Found", request=request, response=httpx.Response(404, request=request)
        )

        with patch("httpx.stream") as stream:
            stream.return_value.__enter__.return_value = response
            with pytest.raises(DocumentImportError, match="404"):
                with acquire_content(URL):
                    pass

    @pytest.mark.network
    def test_temporary_file_removed_on_error(self):
        """The temporary file is removed even when the caller fails."""
        with patch("httpx.stream") as stream:
            stream.return_value.__enter__.return_value = _response(b"<x/>")

            with pytest.raises(RuntimeError):
                with acquire_content(URL) as path:
                    raise RuntimeError("workflow failed")

        assert not path.exists()
