"""Runs many independent queries in parallel, without pagination."""

import asyncio
from typing import BinaryIO, Iterable

from pydantic import BaseModel

from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import DumpConfig
from shared.models.errors import QueryJobError

_DONE = None  # end of results marker for the writer task


class QueryJob(BaseModel):
    """One query of a multi-query run.

    Attributes:
        position: Zero-based position of the query in the input.
        query:    Query string, sent as the q parameter.
        index:    Index to search.
        size:     Maximum number of hits to return.
    """

    position: int
    query: str
    index: str
    size: int


class ParallelQueryRunner:
    """Fires one request per query with at most `concurrency` requests in flight.

    Response bodies are written to the sink by a single writer task, each
    followed by a newline, in the order the responses arrive.
    """

    def __init__(self, helper_config: HelperConfig, client: SearchClientInterface, config: DumpConfig) -> None:
        self.logging = helper_config.get_logger()
        self._client = client
        self._config = config

    async def run(self, queries: Iterable[str], sink: BinaryIO) -> int:
        """Run all queries and write their responses to the sink.

        After the first failure no further queries are started. Queries already
        in flight finish and their results are still written. Output written
        before the failure stays in the sink.

        Args:
            queries (Iterable[str]): The query strings, one request each.
            sink (BinaryIO): Destination of the raw response bodies.

        Returns:
            int: Number of responses written.

        Raises:
            QueryJobError: The first failure of any query or of the sink.
        """
        jobs = [
            QueryJob(position=i, query=query, index=self._config.index, size=self._config.size)
            for i, query in enumerate(queries)
        ]
        self.logging.info("Running %d queries against '%s' with %d workers", len(jobs), self._config.index, self._config.concurrency)

        # state of this run only
        failures: list[QueryJobError] = []
        abort = asyncio.Event()
        sem = asyncio.Semaphore(self._config.concurrency)
        results: asyncio.Queue = asyncio.Queue()
        writer = asyncio.create_task(self._write_results(results, sink, failures, abort))
        try:
            await asyncio.gather(*[self._run_job(job, sem, results, failures, abort) for job in jobs])
        finally:
            await results.put(_DONE)
            written = await writer

        if failures:
            raise failures[0]
        self.logging.info("Wrote %d of %d query results", written, len(jobs))
        return written

    async def _run_job(
        self,
        job: QueryJob,
        sem: asyncio.Semaphore,
        results: asyncio.Queue,
        failures: list[QueryJobError],
        abort: asyncio.Event,
    ) -> None:
        await sem.acquire()
        try:
            if abort.is_set():
                self.logging.debug("Skipping query #%d after an earlier failure", job.position)
                return
            body = await self._client.do_query(index=job.index, query=job.query, size=job.size)
        except Exception as e:
            self._fail(QueryJobError(job.query, e), e, failures, abort)
            return
        finally:
            # free the slot before handing the result over
            sem.release()
        self.logging.debug("Query #%d returned %d bytes", job.position, len(body))
        await results.put(body)

    async def _write_results(
        self,
        results: asyncio.Queue,
        sink: BinaryIO,
        failures: list[QueryJobError],
        abort: asyncio.Event,
    ) -> int:
        """Single consumer: the only place that touches the sink."""
        written = 0
        broken = False
        while True:
            body = await results.get()
            if body is _DONE:
                return written
            if broken:
                # discard results that arrive after the sink failed
                continue
            try:
                sink.write(body)
                sink.write(b"\n")
                written += 1
            except (OSError, ValueError) as e:
                self._fail(QueryJobError("<sink>", e), e, failures, abort)
                broken = True

    def _fail(self, error: QueryJobError, cause: Exception, failures: list[QueryJobError], abort: asyncio.Event) -> None:
        error.__cause__ = cause
        failures.append(error)
        if len(failures) == 1:
            abort.set()
            self.logging.error("%s, no further queries will be started", error)
        else:
            self.logging.warning("Additional failure after the first one: %s", error)
