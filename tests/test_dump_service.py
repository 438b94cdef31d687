import io

import pytest

from _fake_search import ScriptedSearch, booted_client, ok, search_page, truncated
from services.esdump.CursorScroller import CursorScroller
from services.esdump.DumpService import DumpService
from shared.models.config import DumpConfig
from shared.models.errors import MaxRetriesExceededError


async def no_sleep(delay: float) -> None:
    return None


def make_config(**overrides) -> DumpConfig:
    values = dict(server="http://es.test:9200", index="books", query='{"query": {"match_all": {}}}', size=2)
    values.update(overrides)
    return DumpConfig(**values)


@pytest.mark.anyio
async def test_scroll_dump_writes_one_line_per_page(helper_config):
    pages = [search_page("s1", 2, 3), search_page("s2", 1, 3, offset=2), search_page("s3", 0, 3)]
    client = await booted_client(helper_config, ScriptedSearch([ok(p) for p in pages]))
    service = DumpService(helper_config, client, make_config(), sleep=no_sleep)
    sink = io.BytesIO()

    total = await service.do_scroll_dump(sink)

    assert total == 3
    assert sink.getvalue() == pages[0] + b"\n" + pages[1] + b"\n"


@pytest.mark.anyio
async def test_scroll_dump_stops_at_limit(helper_config, monkeypatch):
    # the dump drives the scroller by hand, no async generator is left open at the limit
    monkeypatch.setattr(CursorScroller, "__aiter__", None)
    search = ScriptedSearch([ok(search_page("s1", 2, 10)), ok(search_page("s2", 2, 10, offset=2))])
    client = await booted_client(helper_config, search)
    service = DumpService(helper_config, client, make_config(limit=3), sleep=no_sleep)
    sink = io.BytesIO()

    total = await service.do_scroll_dump(sink)

    assert total == 4
    assert search.calls == 2
    assert sink.getvalue().count(b"\n") == 2


@pytest.mark.anyio
async def test_scroll_dump_keeps_partial_output_on_error(helper_config):
    first = search_page("s1", 2, 10)
    search = ScriptedSearch([ok(first), truncated(), truncated()])
    client = await booted_client(helper_config, search)
    service = DumpService(helper_config, client, make_config(max_retries=2), sleep=no_sleep)
    sink = io.BytesIO()

    with pytest.raises(MaxRetriesExceededError):
        await service.do_scroll_dump(sink)

    assert sink.getvalue() == first + b"\n"


@pytest.mark.anyio
async def test_query_and_id_modes(helper_config):
    search = ScriptedSearch([ok(b'{"a":1}'), ok(b'{"b":2}')])
    client = await booted_client(helper_config, search)
    service = DumpService(helper_config, client, make_config(concurrency=1, id_batch_size=5))

    queries_sink = io.BytesIO()
    assert await service.do_query_dump(["x:1"], queries_sink) == 1
    ids_sink = io.BytesIO()
    assert await service.do_id_dump(["1", "2"], ids_sink) == 1

    assert queries_sink.getvalue() == b'{"a":1}\n'
    assert ids_sink.getvalue() == b'{"b":2}\n'
