"""Error taxonomy for feed and publication-store failures."""

from __future__ import annotations

from typing import Optional


class FestResultsError(Exception):
    """Base class for every error surfaced to callers."""

    kind = "error"


class FetchError(FestResultsError):
    """The feed endpoint is unreachable or answered with a non-success status."""

    kind = "fetch"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyFeedError(FestResultsError):
    """The feed answered successfully but with a zero-length body."""

    kind = "empty"

    def __init__(self, message: str = "No data received from the server."):
        super().__init__(message)


class StoreError(FestResultsError):
    """Reading or writing publication flags failed."""

    kind = "store"
