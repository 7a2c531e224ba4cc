# File: tests/test_engine.py
# End-to-end tests: markdown document -> aiohttp test server -> results.yaml
from __future__ import annotations

from collections import Counter
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web

from conftest import FakeSession, serve_app
from link_scout.checker import Fetcher
from link_scout.engine import FAIL_MARK, OK_MARK, Engine, start_check
from link_scout.store import ResultStore


@pytest_asyncio.fixture
async def link_server(unused_tcp_port: int) -> AsyncIterator[tuple[str, Counter]]:
    """Server with /ok1, /ok2 (200) and /down (503 forever). Counts hits per path."""
    hits: Counter = Counter()
    app = web.Application()

    async def ok(request):
        hits[request.path] += 1
        return web.Response(text="<h1>OK</h1>", content_type="text/html")

    async def down(request):
        hits[request.path] += 1
        return web.Response(status=503)

    app.router.add_get("/ok1", ok)
    app.router.add_get("/ok2", ok)
    app.router.add_get("/down", down)

    async for url in serve_app(app, unused_tcp_port):
        yield url, hits


def collecting_echo(sink: list):
    return sink.append


@pytest.mark.asyncio()
async def test_two_ok_one_unavailable(basic_config, write_document, link_server):
    base, hits = link_server
    write_document(
        f"# Links\n\n* [one]({base}/ok1)\n* [two]({base}/ok2)\n* [three]({base}/down)\n"
    )
    marks: list[str] = []

    summary = await Engine(basic_config, echo=collecting_echo(marks)).check_document()

    assert summary.store.failed == {f"{base}/down": f"[503] {base}/down"}
    assert summary.store.working == {f"{base}/ok1", f"{base}/ok2"}
    assert not summary.ok
    assert hits["/down"] == 5
    assert sorted(marks) == sorted([OK_MARK, OK_MARK, FAIL_MARK])

    persisted = ResultStore.read(basic_config.results)
    assert persisted.working == summary.store.working
    assert persisted.failed == summary.store.failed


@pytest.mark.asyncio()
async def test_empty_document_succeeds(basic_config, write_document):
    write_document("")
    marks: list[str] = []

    summary = await Engine(basic_config, echo=collecting_echo(marks)).check_document()

    assert summary.ok
    assert summary.store.working == set()
    assert summary.store.failed == {}
    assert summary.scheduled == []
    assert marks == []


@pytest.mark.asyncio()
async def test_cached_urls_are_not_scheduled(basic_config, write_document, link_server):
    base, hits = link_server
    ResultStore(working={f"{base}/ok1"}).save(basic_config.results)
    write_document(f"[one]({base}/ok1) [two]({base}/ok2)")

    summary = await Engine(basic_config, echo=lambda _: None).check_document()

    assert summary.scheduled == [f"{base}/ok2"]
    assert summary.skipped == 1
    assert hits["/ok1"] == 0
    assert hits["/ok2"] == 1
    assert summary.store.working == {f"{base}/ok1", f"{base}/ok2"}


@pytest.mark.asyncio()
async def test_previous_failures_are_rechecked(basic_config, write_document, link_server):
    base, hits = link_server
    ResultStore(failed={f"{base}/ok1": f"[500] {base}/ok1"}).save(basic_config.results)
    write_document(f"[one]({base}/ok1)")

    summary = await Engine(basic_config, echo=lambda _: None).check_document()

    assert summary.ok
    assert hits["/ok1"] == 1
    assert ResultStore.read(basic_config.results).failed == {}


@pytest.mark.asyncio()
async def test_duplicates_are_each_checked(basic_config, write_document, link_server):
    base, hits = link_server
    write_document(f"[a]({base}/ok1) <a href=\"{base}/ok1\">again</a>")

    summary = await Engine(basic_config, echo=lambda _: None).check_document()

    assert summary.scheduled == [f"{base}/ok1", f"{base}/ok1"]
    assert hits["/ok1"] == 2
    assert summary.store.working == {f"{base}/ok1"}


@pytest.mark.asyncio()
async def test_non_network_urls_are_ignored(basic_config, write_document, link_server):
    base, hits = link_server
    write_document(f"[rel](docs/guide.md) [anchor](#top) [mail](mailto:a@b.c) ![img]({base}/ok2)")

    summary = await Engine(basic_config, echo=lambda _: None).check_document()

    assert summary.scheduled == [f"{base}/ok2"]
    assert summary.store.working == {f"{base}/ok2"}


@pytest.mark.asyncio()
async def test_store_saved_after_every_completion(basic_config, monkeypatch):
    saves: list[tuple[frozenset, tuple]] = []
    original_save = ResultStore.save

    def spy(self, path):
        saves.append((frozenset(self.working), tuple(sorted(self.failed))))
        return original_save(self, path)

    monkeypatch.setattr(ResultStore, "save", spy)
    session = FakeSession(lambda url: (200, {}) if "good" in url else (404, {}))
    urls = ["https://good.example/1", "https://bad.example/2", "https://good.example/3"]

    summary = await Engine(basic_config, session=session, echo=lambda _: None).run(urls)

    # initial checkpoint, then one per completion
    assert len(saves) == 4
    assert [len(w) + len(f) for w, f in saves] == [0, 1, 2, 3]
    assert summary.store.failed == {"https://bad.example/2": "[404] https://bad.example/2"}


@pytest.mark.asyncio()
async def test_injected_session_is_left_open(basic_config):
    session = FakeSession(lambda url: (200, {}))
    engine = Engine(basic_config, session=session, echo=lambda _: None)

    summary = await engine.run(["https://a.example", "https://b.example"])

    assert summary.ok
    assert sorted(session.calls) == ["https://a.example", "https://b.example"]


@pytest.mark.asyncio()
async def test_unexpected_fetcher_error_aborts_run(basic_config, monkeypatch):
    async def broken(self, url):
        raise RuntimeError("fetcher bug")

    monkeypatch.setattr(Fetcher, "check", broken)
    session = FakeSession(lambda url: (200, {}))

    with pytest.raises(RuntimeError, match="fetcher bug"):
        await Engine(basic_config, session=session, echo=lambda _: None).run(["https://a.example"])


@pytest.mark.asyncio()
async def test_pool_bounds_concurrency_during_run(basic_config, monkeypatch):
    from link_scout.checker import pool as pool_module

    pools: list = []
    original_init = pool_module.ResourcePool.__init__

    def tracking_init(self, capacity=20):
        original_init(self, capacity)
        pools.append(self)

    monkeypatch.setattr(pool_module.ResourcePool, "__init__", tracking_init)
    session = FakeSession(lambda url: (200, {}))
    urls = [f"https://example.com/{i}" for i in range(30)]

    await Engine(basic_config, session=session, echo=lambda _: None).run(urls)

    (pool,) = pools
    assert pool.capacity == basic_config.max_connections
    assert 0 < pool.peak <= basic_config.max_connections
    assert pool.acquired == pool.released == 30


@pytest.mark.asyncio()
async def test_start_check_reset_cache(basic_config, write_document, link_server):
    base, hits = link_server
    ResultStore(working={f"{base}/ok1"}).save(basic_config.results)
    write_document(f"[one]({base}/ok1)")

    summary = await start_check(basic_config, reset_cache=True)

    assert summary.scheduled == [f"{base}/ok1"]
    assert hits["/ok1"] == 1
    assert summary.ok


@pytest.mark.asyncio()
async def test_unencodable_host_is_recorded_not_raised(basic_config, write_document, link_server):
    base, hits = link_server
    bad = "http://example..com/"
    write_document(f"[ok]({base}/ok1) [typo]({bad})")
    config = basic_config.model_copy(update={"max_attempts": 2})

    summary = await Engine(config, echo=lambda _: None).check_document()

    assert summary.store.working == {f"{base}/ok1"}
    assert list(summary.store.failed) == [bad]
    assert summary.store.failed[bad].startswith("transport error: ")
    assert not summary.ok
