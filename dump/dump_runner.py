"""Dump runner entry point.

Streams documents out of an Elasticsearch compatible cluster to stdout (or a
file), using GET requests only.

Usage:
    esdump -s https://search.fatcat.wiki -i fatcat_release -q 'affiliation:"alberta"' > docs.ndjson
    esdump -s http://localhost:9200 -i articles --ids ids.txt
    esdump -s http://localhost:9200 -i articles --mq queries.txt -w 8
"""

import asyncio
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import BinaryIO, Optional

import typer

from services.esdump.DumpService import DumpService
from shared.clients.search.SearchClientManager import SearchClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.helper.query_helper import normalize_query, read_lines
from shared.logging.logging_setup import setup_logging
from shared.models.config import DefaultOperator, DumpConfig, InitStrategy
from shared.models.errors import EsdumpError

app = typer.Typer(add_completion=False, help="Stream documents from an Elasticsearch index to stdout.")


def get_version() -> str:
    try:
        return version("esdump")
    except PackageNotFoundError:
        return "unknown"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"esdump {get_version()}")
        raise typer.Exit()


async def run_dump(
    helper_config: HelperConfig,
    config: DumpConfig,
    sink: BinaryIO,
    ids_file: Path | None = None,
    queries_file: Path | None = None,
) -> int:
    """Boot the search client, run the selected mode and close the client again.

    Returns:
        int: Documents received (scroll), responses written (queries) or requests made (ids).
    """
    client = SearchClientManager(helper_config=helper_config, server=config.server).get_client()
    await client.boot()
    try:
        service = DumpService(helper_config, client, config)
        if ids_file is not None:
            with ids_file.open(encoding="utf-8") as f:
                return await service.do_id_dump(f, sink)
        if queries_file is not None:
            with queries_file.open(encoding="utf-8") as f:
                queries = read_lines(f)
            return await service.do_query_dump(queries, sink)
        return await service.do_scroll_dump(sink)
    finally:
        await client.close()


@app.command()
def main(
    query: str = typer.Option("", "-q", "--query", envvar="ESDUMP_QUERY", help="Query to run, JSON or query string. Empty matches all documents, e.g. 'affiliation:\"alberta\"'."),
    query_file: Optional[Path] = typer.Option(None, "--query-file", exists=True, dir_okay=False, help="Read the query from a file."),
    index: str = typer.Option("_all", "-i", "--index", envvar="ESDUMP_INDEX", help="Index name."),
    server: str = typer.Option("http://localhost:9200", "-s", "--server", envvar="ESDUMP_SERVER", help="Elasticsearch server."),
    scroll: str = typer.Option("10m", "--scroll", envvar="ESDUMP_SCROLL", help="Scroll context timeout."),
    size: int = typer.Option(1000, "--size", min=1, help="Batch size."),
    workers: int = typer.Option(4, "-w", "--workers", min=1, help="Parallel requests in multi-query mode."),
    limit: int = typer.Option(0, "-l", "--limit", min=0, help="Stop after this many documents, 0 for no limit."),
    max_retries: int = typer.Option(3, "--max-retries", min=0, help="Attempts per scroll page when the response body is cut off."),
    ids: Optional[Path] = typer.Option(None, "--ids", exists=True, dir_okay=False, help="File with one document id per line."),
    id_batch_size: int = typer.Option(100, "--id-batch-size", min=1, help="Ids per lookup request."),
    mq: Optional[Path] = typer.Option(None, "--mq", exists=True, dir_okay=False, help="File with one query string per line, run in parallel."),
    op: DefaultOperator = typer.Option(DefaultOperator.OR, "--op", case_sensitive=False, help="Default operator for query strings."),
    query_string: bool = typer.Option(False, "--query-string", help="Send the query as q= URL parameter instead of a JSON body."),
    output: Optional[Path] = typer.Option(None, "-o", "--output", dir_okay=False, help="Write to a file instead of stdout."),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Be verbose."),
    show_version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."),
) -> None:
    """Stream documents from an Elasticsearch index using the scroll API."""
    if ids is not None and mq is not None:
        raise typer.BadParameter("--ids and --mq cannot be used together.", param_hint="'--ids' / '--mq'")
    logger = setup_logging(verbose=verbose)
    helper_config = HelperConfig(logger=logger)

    if query_file is not None:
        query = query_file.read_text(encoding="utf-8")
    strategy = InitStrategy.QUERY_STRING if query_string else InitStrategy.BODY
    if strategy == InitStrategy.BODY:
        query = normalize_query(query, op)
    elif not query.strip():
        query = "*"

    try:
        config = DumpConfig(
            server=server,
            index=index,
            query=query.strip(),
            scroll=scroll,
            size=size,
            concurrency=workers,
            limit=limit,
            max_retries=max_retries,
            retry_delay=helper_config.get_number_val("ESDUMP_RETRY_DELAY", default=10.0),
            default_operator=op,
            init_strategy=strategy,
            id_batch_size=id_batch_size,
        )
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        raise typer.Exit(code=2)

    try:
        if output is not None:
            with output.open("wb") as sink:
                asyncio.run(run_dump(helper_config, config, sink, ids_file=ids, queries_file=mq))
        else:
            sink = typer.get_binary_stream("stdout")
            asyncio.run(run_dump(helper_config, config, sink, ids_file=ids, queries_file=mq))
            sink.flush()
    except (EsdumpError, ValueError) as e:
        logger.error("%s", e)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
