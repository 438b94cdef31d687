import io

import httpx
import pytest

from _fake_search import ScriptedSearch, booted_client
from services.esdump.IdentifierBatchReader import IdentifierBatchReader
from shared.models.config import DumpConfig
from shared.models.errors import RequestFailedError


def make_config(batch_size: int) -> DumpConfig:
    return DumpConfig(server="http://es.test:9200", index="books", id_batch_size=batch_size)


@pytest.mark.anyio
async def test_ids_are_looked_up_in_batches_in_order(helper_config):
    search = ScriptedSearch([
        httpx.Response(200, content=b'{"docs":["a","b"]}'),
        httpx.Response(200, content=b'{"docs":["c"]}'),
    ])
    client = await booted_client(helper_config, search)
    reader = IdentifierBatchReader(helper_config, client, make_config(batch_size=2))
    sink = io.BytesIO()

    requests = await reader.run(["a\n", "b\n", "c\n"], sink)

    assert requests == 2
    assert search.calls == 2
    for request in search.requests:
        assert request.method == "GET"
        assert request.url.path == "/books/_mget"
    assert search.body(0) == {"ids": ["a", "b"]}
    assert search.body(1) == {"ids": ["c"]}
    assert sink.getvalue() == b'{"docs":["a","b"]}\n{"docs":["c"]}\n'


@pytest.mark.anyio
async def test_blank_lines_are_skipped(helper_config):
    search = ScriptedSearch([httpx.Response(200, content=b"{}")])
    client = await booted_client(helper_config, search)
    reader = IdentifierBatchReader(helper_config, client, make_config(batch_size=10))

    await reader.run(["  x  ", "", "\n", "y"], io.BytesIO())

    assert search.body(0) == {"ids": ["x", "y"]}


@pytest.mark.anyio
async def test_failed_lookup_stops_the_run(helper_config):
    search = ScriptedSearch([
        httpx.Response(200, content=b"{}"),
        httpx.Response(503, content=b"unavailable"),
    ])
    client = await booted_client(helper_config, search)
    reader = IdentifierBatchReader(helper_config, client, make_config(batch_size=1))
    sink = io.BytesIO()

    with pytest.raises(RequestFailedError):
        await reader.run(["a", "b", "c"], sink)

    assert search.calls == 2
    assert sink.getvalue() == b"{}\n"
