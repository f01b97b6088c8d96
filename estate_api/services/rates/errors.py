from __future__ import annotations

from typing import Optional


class UpstreamError(Exception):
    """Base class for failures talking to the upstream rate page."""


class UpstreamHttpError(UpstreamError):
    """Non-success status, or no response at all (status_code is None)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamParseError(UpstreamError):
    """The page was fetched but the expected rate data is not in it."""
