"""Dump service.

Drives one of the three retrieval modes against a booted search client and
streams the raw responses into a byte sink:

* scroll:   every document matching one query, page by page
* queries:  many independent queries in parallel, one response each
* ids:      documents looked up by identifier, in batches
"""

import asyncio
from typing import Awaitable, BinaryIO, Callable, Iterable

from services.esdump.CursorScroller import CursorScroller
from services.esdump.IdentifierBatchReader import IdentifierBatchReader
from services.esdump.ParallelQueryRunner import ParallelQueryRunner
from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import DumpConfig


class DumpService:
    """Orchestrates a single dump run."""

    def __init__(
        self,
        helper_config: HelperConfig,
        client: SearchClientInterface,
        config: DumpConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self._client = client
        self._config = config
        self._sleep = sleep

    async def do_scroll_dump(self, sink: BinaryIO) -> int:
        """Write every page of the scroll to the sink, one response per line.

        Stops early once the configured limit of documents was reached; the
        last page is written in full, so the output may exceed the limit.

        Args:
            sink (BinaryIO): Destination of the raw page bodies.

        Returns:
            int: Number of documents received.

        Raises:
            EsdumpError: If the scroll failed. Pages written before stay in the sink.
        """
        scroller = CursorScroller(self._helper_config, self._client, self._config, sleep=self._sleep)
        while await scroller.advance():
            sink.write(scroller.raw)
            sink.write(b"\n")
            if self._config.limit and scroller.total >= self._config.limit:
                self.logging.info("Limit of %d documents reached", self._config.limit)
                break
        if scroller.err is not None:
            raise scroller.err
        self.logging.info("%d documents in %0.2fs", scroller.total, scroller.elapsed, color="green")
        return scroller.total

    async def do_query_dump(self, queries: Iterable[str], sink: BinaryIO) -> int:
        """Run many queries in parallel and write each response to the sink.

        Returns:
            int: Number of responses written.
        """
        runner = ParallelQueryRunner(self._helper_config, self._client, self._config)
        return await runner.run(queries, sink)

    async def do_id_dump(self, lines: Iterable[str], sink: BinaryIO) -> int:
        """Look up documents by identifier and write each batch response to the sink.

        Returns:
            int: Number of lookup requests made.
        """
        reader = IdentifierBatchReader(self._helper_config, self._client, self._config)
        return await reader.run(lines, sink)
