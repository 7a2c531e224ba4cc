# link_scout/checker/models.py
"""
Data models for the LinkScout checker: the result of one URL check and the
errors a check can end with.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = (
    "CheckError",
    "TransportError",
    "HttpStatusError",
    "NotAttempted",
    "CheckResult",
)


class CheckError(Exception):
    """Base class for everything a single URL check can fail with."""


class TransportError(CheckError):
    """Failure below the HTTP layer: connect, DNS, TLS or timeout."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"transport error: {self.detail}"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, TransportError) and other.detail == self.detail

    __hash__ = CheckError.__hash__


class HttpStatusError(CheckError):
    """A completed request that came back with a status other than 200."""

    def __init__(self, status: int, location: Optional[str] = None) -> None:
        super().__init__(status, location)
        self.status = status
        self.location = location

    def __str__(self) -> str:
        return f"http error: {self.status}"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, HttpStatusError)
            and other.status == self.status
            and other.location == self.location
        )

    __hash__ = CheckError.__hash__


class NotAttempted(CheckError):
    """Placeholder for the fetcher's retry loop; never part of a returned result."""

    def __str__(self) -> str:
        return "failed to try url"


@dataclass(slots=True, frozen=True)
class CheckResult:
    """Outcome of checking *url*: success when *error* is None."""

    url: str
    error: Optional[CheckError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def diagnostic(self) -> str:
        """Render the failure the way it is stored and reported.

        ``[404] https://x`` / ``[301] https://x -> https://y`` for status
        errors, ``str(error)`` for anything else.
        """
        err = self.error
        if err is None:
            raise ValueError(f"{self.url} did not fail")
        if isinstance(err, HttpStatusError):
            if err.location:
                return f"[{err.status}] {self.url} -> {err.location}"
            return f"[{err.status}] {self.url}"
        return str(err) or type(err).__name__
