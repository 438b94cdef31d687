"""Scripted fake of a search cluster, served through httpx.MockTransport."""

import json

import httpx

from shared.clients.search.elasticsearch.SearchClientElasticsearch import SearchClientElasticsearch

SERVER = "http://es.test:9200"


def search_page(scroll_id: str | None, hit_count: int, total, offset: int = 0) -> bytes:
    body: dict = {
        "took": 3,
        "timed_out": False,
        "hits": {
            "total": total,
            "max_score": 1.0,
            "hits": [
                {"_index": "books", "_id": str(offset + i), "_score": 1.0, "_source": {"n": offset + i}}
                for i in range(hit_count)
            ],
        },
    }
    if scroll_id is not None:
        body["_scroll_id"] = scroll_id
    return json.dumps(body).encode()


class TruncatedStream(httpx.AsyncByteStream):
    """A body that breaks off after its first chunk."""

    def __init__(self, head: bytes = b'{"_scroll_id": "x", "hits": {"hi') -> None:
        self._head = head

    async def __aiter__(self):
        yield self._head
        raise httpx.ReadError("unexpected EOF")


def truncated() -> httpx.Response:
    return httpx.Response(200, stream=TruncatedStream())


def ok(body: bytes) -> httpx.Response:
    return httpx.Response(200, content=body, headers={"Content-Type": "application/json"})


class ScriptedSearch:
    """Answers requests with a fixed script and records every request it saw.

    Script items are responses, exceptions to raise, or callables taking the request.
    """

    def __init__(self, script: list) -> None:
        self._script = list(script)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._script:
            raise AssertionError(f"unexpected request {request.method} {request.url}")
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    @property
    def calls(self) -> int:
        return len(self.requests)

    def body(self, n: int) -> dict:
        return json.loads(self.requests[n].content)


async def booted_client(helper_config, handler) -> SearchClientElasticsearch:
    client = SearchClientElasticsearch(helper_config=helper_config, server=SERVER)
    await client.boot(transport=httpx.MockTransport(handler))
    return client


def bad_gzip() -> httpx.Response:
    """A body labelled as gzip that is not gzip."""
    return httpx.Response(200, stream=httpx.ByteStream(b"not gzip at all"), headers={"Content-Encoding": "gzip"})
