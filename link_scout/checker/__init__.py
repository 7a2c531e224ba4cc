"""link_scout.checker: concurrent URL verification (permit pool, fetcher, result models)."""

from link_scout.checker.client import create_session
from link_scout.checker.fetcher import Fetcher, rewrite_actions_url
from link_scout.checker.models import (
    CheckError,
    CheckResult,
    HttpStatusError,
    NotAttempted,
    TransportError,
)
from link_scout.checker.pool import Permit, ResourcePool

__all__ = [
    "CheckError",
    "CheckResult",
    "Fetcher",
    "HttpStatusError",
    "NotAttempted",
    "Permit",
    "ResourcePool",
    "TransportError",
    "create_session",
    "rewrite_actions_url",
]
