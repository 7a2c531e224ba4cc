# File: link_scout/engine.py
"""link_scout.engine: Orchestration layer — фильтрация кандидатов, запуск проверок и сохранение результатов."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Iterable, List, Optional, Union

import click
from aiohttp import ClientSession

from link_scout.checker import CheckResult, Fetcher, ResourcePool, create_session
from link_scout.config import CheckerConfig
from link_scout.logger import logger
from link_scout.parser.markdown_parser import extract_from_file
from link_scout.store import ResultStore

__all__ = ["Engine", "RunSummary", "start_check", "OK_MARK", "FAIL_MARK"]

OK_MARK = "✔ "
FAIL_MARK = "✘ "


@dataclass(slots=True)
class RunSummary:
    """Итог одного запуска: что проверено, что взято из кеша и финальный стор."""

    store: ResultStore
    scheduled: List[str] = field(default_factory=list)
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return self.store.ok


_Completion = Union[CheckResult, BaseException]


class Engine:
    """Фасад для CLI и тестов: один документ, один стор, один HTTP-клиент."""

    def __init__(
        self,
        config: CheckerConfig,
        *,
        store: Optional[ResultStore] = None,
        session: Optional[ClientSession] = None,
        echo: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.config = config
        self.store = store if store is not None else ResultStore.load(config.results)
        self._session = session
        self._echo = echo or partial(click.echo, nl=False)

    def select(self, urls: Iterable[str]) -> List[str]:
        """Оставляет сетевые URL, которых нет в кеше working. Дубликаты не схлопываются."""
        return [
            url
            for url in urls
            if self.config.is_checkable(url) and url not in self.store.working
        ]

    async def check_document(self) -> RunSummary:
        """Извлекает ссылки из config.document и проверяет их."""
        urls = extract_from_file(self.config.document)
        logger.info("Found %d links in %s", len(urls), self.config.document)
        return await self.run(urls)

    async def run(self, urls: Iterable[str]) -> RunSummary:
        """Проверяет URL конкурентно и сохраняет стор после каждого результата."""
        urls = list(urls)
        scheduled = self.select(urls)
        summary = RunSummary(
            store=self.store,
            scheduled=scheduled,
            skipped=sum(1 for u in urls if u in self.store.working),
        )
        logger.info("Checking %d urls, %d cached as working", len(scheduled), summary.skipped)
        # failures of the previous run are gone from disk even if nothing completes
        self.store.save(self.config.results)

        session = self._session or create_session(self.config)
        try:
            fetcher = Fetcher(session, self.config, ResourcePool(self.config.max_connections))
            await self._drain(fetcher, scheduled)
        finally:
            if self._session is None:
                await session.close()

        logger.info("Done: %d working, %d failed", len(self.store.working), len(self.store.failed))
        return summary

    async def _drain(self, fetcher: Fetcher, urls: List[str]) -> None:
        done: asyncio.Queue[_Completion] = asyncio.Queue()

        async def _check(url: str) -> None:
            try:
                result: _Completion = await fetcher.check(url)
            except Exception as exc:
                result = exc
            done.put_nowait(result)

        tasks = [asyncio.create_task(_check(url)) for url in urls]
        try:
            for _ in range(len(tasks)):
                logger.debug("Waiting...")
                item = await done.get()
                if isinstance(item, BaseException):
                    raise item
                self._record(item)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    def _record(self, result: CheckResult) -> None:
        if result.ok:
            self._echo(OK_MARK)
            self.store.mark_working(result.url)
        else:
            self._echo(FAIL_MARK)
            self.store.mark_failed(result.url, result.diagnostic())
        self.store.save(self.config.results)


async def start_check(cfg: CheckerConfig, *, reset_cache: bool = False) -> RunSummary:
    """
    Проверяет документ из конфигурации и возвращает RunSummary.

    Parameters
    ----------
    cfg : CheckerConfig
        Конфигурация проверки.
    reset_cache : bool
        Забыть ранее подтверждённые рабочие URL.
    """
    engine = Engine(cfg)
    if reset_cache:
        engine.store.reset()
    return await engine.check_document()
