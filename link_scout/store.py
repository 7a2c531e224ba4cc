# File: link_scout/store.py
"""link_scout.store: кеш результатов проверки (working / failed) в YAML-файле."""

from __future__ import annotations

import os
import stat
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Set, Union

import yaml

from link_scout.logger import logger

__all__ = ["ResultStore"]


def _target_mode(path: Path) -> int:
    """Permissions for *path*: the existing file's, else 0666 minus the umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


@dataclass
class ResultStore:
    """Known-working URLs plus the URLs that failed in the current run.

    ``working`` is a positive cache that survives between runs and only
    grows. ``failed`` is rebuilt every run. A URL is never in both.
    """

    working: Set[str] = field(default_factory=set)
    failed: Dict[str, str] = field(default_factory=dict)

    def mark_working(self, url: str) -> None:
        self.failed.pop(url, None)
        self.working.add(url)

    def mark_failed(self, url: str, diagnostic: str) -> None:
        self.working.discard(url)
        self.failed[url] = diagnostic

    def reset(self) -> None:
        """Forget everything, including the positive cache."""
        self.working.clear()
        self.failed.clear()

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "working": sorted(self.working),
            "failed": {url: self.failed[url] for url in sorted(self.failed)},
        }

    @classmethod
    def from_dict(cls, data: Any) -> ResultStore:
        if not isinstance(data, dict):
            raise TypeError(f"Верхний уровень должен быть mapping, получено {type(data).__name__}")
        working = data.get("working") or []
        failed = data.get("failed") or {}
        if not isinstance(working, list) or not isinstance(failed, dict):
            raise TypeError("working должен быть списком, failed — mapping")
        return cls(
            working={str(u) for u in working},
            failed={str(k): str(v) for k, v in failed.items()},
        )

    # ------------------------------------------------------------------ #
    # Persistence                                                        #
    # ------------------------------------------------------------------ #

    @classmethod
    def read(cls, path: Union[str, Path]) -> ResultStore:
        """Decode *path* as is. Raises on a missing or malformed file."""
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: Union[str, Path]) -> ResultStore:
        """Load the cache for a new run: unreadable means empty, failures are dropped."""
        p = Path(path)
        try:
            store = cls.read(p)
        except FileNotFoundError:
            logger.debug("No results cache at %s, starting empty", p)
            store = cls()
        except (OSError, UnicodeDecodeError, yaml.YAMLError, TypeError) as exc:
            logger.warning("Ignoring unreadable results cache %s: %s", p, exc)
            store = cls()
        store.failed.clear()
        return store

    def save(self, path: Union[str, Path]) -> Path:
        """Write the whole store; the file is replaced atomically."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump(
            self.to_dict(), allow_unicode=True, sort_keys=False, default_flow_style=False
        )
        mode = _target_mode(p)
        fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=p.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            # mkstemp creates 0600; keep the cache as readable as before
            os.chmod(tmp, mode)
            os.replace(tmp, p)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        return p
