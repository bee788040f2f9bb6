"""
Content acquisition for document arguments.

Documents may be given as local paths or as ``http(s)://`` URLs; URLs
are downloaded into a temporary file for the duration of a workflow.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from urllib.parse import urlparse

import httpx

from oval_runner.errors import DocumentImportError

logger = logging.getLogger(__name__)


def is_url(source: str | Path) -> bool:
    return urlparse(str(source)).scheme in ("http", "https")


def display_name(source: str | Path) -> str:
    """Base name of a path or URL, used to name evaluation sessions."""
    if is_url(source):
        name = Path(urlparse(str(source)).path).name
        return name or urlparse(str(source)).netloc
    return Path(source).name


@contextmanager
def acquire_content(source: str | Path, timeout: float = 30.0) -> Iterator[Path]:
    """
    Yield a local path holding the content of ``source``.

    Local paths are yielded unchanged. URLs are downloaded into a
    temporary file that is removed on exit.

    Raises:
        DocumentImportError: The download failed
    """
    if not is_url(source):
        yield Path(source)
        return

    url = str(source)
    suffix = Path(urlparse(url).path).suffix or ".xml"
    fd, name = tempfile.mkstemp(prefix="oval-", suffix=suffix)
    path = Path(name)
    try:
        logger.info(f"Downloading {url}")
        try:
            with os.fdopen(fd, "wb") as f, httpx.stream("GET", url, timeout=timeout, follow_redirects=True) as response:
                response.raise_for_status()
                for chunk in response.iter_bytes():
                    f.write(chunk)
        except httpx.HTTPError as e:
            raise DocumentImportError(url, str(e)) from e
        logger.debug(f"Downloaded {url} to {path}")
        yield path
    finally:
        path.unlink(missing_ok=True)
