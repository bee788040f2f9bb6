"""
Lifecycle base for models and sessions.

Every model and session is released exactly once, either explicitly with
``close()`` or by leaving a ``with`` block. Workflows stack them in an
``ExitStack`` so an early failure releases only what was acquired.
"""

from __future__ import annotations

import logging

from oval_runner.errors import ModelReleasedError

logger = logging.getLogger(__name__)


class ManagedResource:
    """A releasable model or session."""

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the resource has been released."""
        return self._closed

    def close(self) -> None:
        """Release the resource. Calling it again is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._release()
        logger.debug(f"Released {self!r}")

    def _release(self) -> None:
        """Hook for subclasses to drop what they own."""

    def _ensure_open(self) -> None:
        if self._closed:
            raise ModelReleasedError(f"{type(self).__name__} has already been released")

    def __enter__(self):
        self._ensure_open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
