# link_scout/checker/client.py
"""
The one HTTP client shared by every check in a run.

Built once from :class:`~link_scout.config.CheckerConfig` and handed to each
:class:`~link_scout.checker.fetcher.Fetcher`; nothing mutates it afterwards.
"""
from __future__ import annotations

from aiohttp import ClientSession, ClientTimeout, TCPConnector

from link_scout.config import CheckerConfig

__all__ = ("create_session",)


def create_session(config: CheckerConfig) -> ClientSession:
    """Return a session with the TLS, user-agent and timeout policy of *config*.

    Certificate validation is off by default because plenty of linked sites
    run on expired certificates; ``curl/7.54.0`` is used as user-agent since
    some hosts reject unknown clients. Redirects are disabled per request by
    the fetcher.
    """
    # the pool bounds concurrency; the connector must not add a second limit
    connector = TCPConnector(ssl=None if config.verify_ssl else False, limit=0)
    return ClientSession(
        connector=connector,
        timeout=ClientTimeout(total=config.timeout),
        headers={"User-Agent": config.user_agent, "Accept": config.accept},
        raise_for_status=False,
    )
