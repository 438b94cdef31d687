import json
import logging

import httpx
import pytest
from typer.testing import CliRunner

from _fake_search import bad_gzip, search_page
from dump import dump_runner
from shared.clients.ClientInterface import ClientInterface

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    # the command line binds its log handler to the runner's temporary stderr
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


@pytest.fixture
def fake_cluster(monkeypatch):
    """Routes every client built by the command line to a recording fake cluster."""
    seen: list[httpx.Request] = []
    responses: list[httpx.Response] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return responses.pop(0)

    monkeypatch.setattr(ClientInterface, "_build_transport", lambda self: httpx.MockTransport(handler))
    monkeypatch.delenv("SEARCH_ENGINE", raising=False)
    monkeypatch.setenv("ESDUMP_RETRY_DELAY", "0")
    return seen, responses


def test_version():
    result = runner.invoke(dump_runner.app, ["--version"])

    assert result.exit_code == 0
    assert "esdump" in result.stdout


def test_scroll_to_stdout(fake_cluster):
    seen, responses = fake_cluster
    responses.extend([
        httpx.Response(200, content=search_page("s1", 2, 2)),
        httpx.Response(200, content=search_page("s1", 0, 2)),
    ])

    result = runner.invoke(dump_runner.app, ["-s", "http://es.test:9200", "-i", "books", "-q", "title:x", "--op", "AND"])

    assert result.exit_code == 0
    assert b'"_scroll_id": "s1"' in result.stdout_bytes
    body = json.loads(seen[0].content)
    assert body["query"]["query_string"] == {"query": "title:x", "default_operator": "AND"}
    assert seen[1].url.path == "/_search/scroll"


def test_scroll_to_file(fake_cluster, tmp_path):
    seen, responses = fake_cluster
    page = search_page("s1", 1, 1)
    responses.extend([
        httpx.Response(200, content=page),
        httpx.Response(200, content=search_page("s1", 0, 1)),
    ])
    out = tmp_path / "docs.ndjson"

    result = runner.invoke(dump_runner.app, ["-s", "http://es.test:9200", "-i", "books", "-o", str(out), "--query-string"])

    assert result.exit_code == 0
    assert out.read_bytes() == page + b"\n"
    assert seen[0].url.params["q"] == "*"


def test_multi_query_file(fake_cluster, tmp_path):
    seen, responses = fake_cluster
    responses.extend([httpx.Response(200, content=b"{}"), httpx.Response(200, content=b"{}")])
    queries = tmp_path / "queries.txt"
    queries.write_text("a:1\n\nb:2\n")

    result = runner.invoke(dump_runner.app, ["-s", "http://es.test:9200", "-i", "books", "--mq", str(queries), "-w", "2"])

    assert result.exit_code == 0
    assert sorted(r.url.params["q"] for r in seen) == ["a:1", "b:2"]


def test_server_error_exits_non_zero(fake_cluster):
    seen, responses = fake_cluster
    responses.append(httpx.Response(500, content=b"oops"))

    result = runner.invoke(dump_runner.app, ["-s", "http://es.test:9200", "-i", "books"])

    assert result.exit_code == 1
    assert len(seen) == 1


def test_undecodable_body_is_logged_and_exits_non_zero(fake_cluster):
    seen, responses = fake_cluster
    first = search_page("s1", 2, 4)
    responses.extend([httpx.Response(200, content=first), bad_gzip()])

    result = runner.invoke(dump_runner.app, ["-s", "http://es.test:9200", "-i", "books"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert first + b"\n" in result.stdout_bytes
    assert len(seen) == 2


def test_ids_and_multi_query_are_exclusive(fake_cluster, tmp_path):
    seen, _ = fake_cluster
    ids = tmp_path / "ids.txt"
    ids.write_text("1\n2\n")
    queries = tmp_path / "queries.txt"
    queries.write_text("a:1\n")

    result = runner.invoke(dump_runner.app, ["-s", "http://es.test:9200", "--ids", str(ids), "--mq", str(queries)])

    assert result.exit_code == 2
    assert seen == []
