# link_scout/checker/fetcher.py
"""
Fetcher module: one logical check of a URL with retries and the GitHub
actions rewrite, bounded by the shared permit pool.
"""
from __future__ import annotations

import asyncio
import re
from typing import Optional

from aiohttp import ClientError, ClientSession, hdrs

from link_scout.checker.models import (
    CheckError,
    CheckResult,
    HttpStatusError,
    NotAttempted,
    TransportError,
)
from link_scout.checker.pool import ResourcePool
from link_scout.config import CheckerConfig
from link_scout.logger import get_logger

__all__ = ("Fetcher", "rewrite_actions_url")

logger = get_logger("fetcher")

_ACTIONS_RE = re.compile(
    r"https://github\.com/(?P<org>[^/]+)/(?P<repo>[^/]+)/actions(?:\?workflow=.+)?"
)


def rewrite_actions_url(url: str) -> Optional[str]:
    """
    Map a GitHub actions page to its repository page.

    Actions pages of private or disabled workflows answer 404 even though the
    repository itself is fine. Returns None for any other URL.
    """
    if not _ACTIONS_RE.search(url):
        return None
    return _ACTIONS_RE.sub(r"https://github.com/\g<org>/\g<repo>", url)


class Fetcher:
    """Checks URLs with a fixed attempt budget and no redirect following."""

    def __init__(
        self,
        session: ClientSession,
        config: CheckerConfig,
        pool: ResourcePool,
    ) -> None:
        self.session = session
        self.config = config
        self.pool = pool

    async def check(self, url: str) -> CheckResult:
        """
        Check *url* while holding one permit.

        Returns CheckResult under the original URL, even when the verdict
        came from the rewritten GitHub repository URL.
        """
        async with self.pool.permit():
            error, status = await self._attempts(url)
            replacement = rewrite_actions_url(url) if status == 404 else None
            if replacement is not None:
                logger.warning(
                    "Got 404 with Github actions, so replacing %s with %s", url, replacement
                )
                # one substitution only: the repository URL is never rewritten
                error, _ = await self._attempts(replacement, may_rewrite=False)
        if error is None:
            logger.debug("Finished %s", url)
        return CheckResult(url, error)

    async def _attempts(
        self, url: str, may_rewrite: bool = True
    ) -> tuple[Optional[CheckError], Optional[int]]:
        """
        Run the retry loop for *url*.

        Returns (None, 200) on success, otherwise the last recorded error and
        the last HTTP status seen. With *may_rewrite*, a 404 on a rewritable
        URL stops the loop early so that the caller can switch URLs.
        """
        error: CheckError = NotAttempted()
        status: Optional[int] = None
        for attempt in range(1, self.config.max_attempts + 1):
            logger.debug("Running %s (attempt %d/%d)", url, attempt, self.config.max_attempts)
            try:
                async with self.session.get(url, allow_redirects=False) as resp:
                    status = resp.status
                    if status == 200:
                        return None, status
                    location = None
                    if 300 <= status < 400:
                        location = resp.headers.get(hdrs.LOCATION)
                    error = HttpStatusError(status, location)
            except (ClientError, asyncio.TimeoutError, ValueError) as exc:
                # ValueError: URLs aiohttp cannot encode, e.g. empty IDNA labels
                status = None
                error = TransportError(str(exc) or type(exc).__name__)
                logger.warning("Error while getting %s, retrying: %s", url, error)
                continue

            if may_rewrite and status == 404 and rewrite_actions_url(url) is not None:
                break
            logger.warning("Error while getting %s, retrying: %s", url, status)

        assert not isinstance(error, NotAttempted), "max_attempts must be >= 1"
        return error, status
