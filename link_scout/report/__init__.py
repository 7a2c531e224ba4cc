# File: link_scout/report/__init__.py
"""link_scout.report: итоговый отчёт — строки для консоли и JSON-файл, используемые CLI и тестами."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from link_scout.engine import RunSummary


def report_lines(summary: RunSummary) -> List[str]:
    """Строки финального отчёта (после пустой строки-разделителя)."""
    failed = summary.store.failed
    if not failed:
        return ["No errors!"]
    lines = [failed[url] for url in sorted(failed)]
    lines.append(f"{len(failed)} urls with errors")
    return lines


def to_dict(summary: RunSummary) -> Dict[str, Any]:
    store = summary.store.to_dict()
    return {
        "ok": summary.ok,
        "checked": len(summary.scheduled),
        "skipped": summary.skipped,
        "working": store["working"],
        "failed": store["failed"],
    }


def render_json(summary: RunSummary, path: Union[str, Path]) -> Path:
    """Сохраняет JSON-отчёт по указанному пути и возвращает Path файла."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(to_dict(summary), f, ensure_ascii=False, indent=2)
    return p


__all__ = ["report_lines", "to_dict", "render_json"]
