from typing import BinaryIO, Iterable

from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.query_helper import batched, read_lines
from shared.models.config import DumpConfig


class IdentifierBatchReader:
    """Looks documents up by identifier, one request per batch of ids."""

    def __init__(self, helper_config: HelperConfig, client: SearchClientInterface, config: DumpConfig) -> None:
        self.logging = helper_config.get_logger()
        self._client = client
        self._config = config

    async def run(self, lines: Iterable[str], sink: BinaryIO) -> int:
        """Read identifiers, one per line, and write each batch response to the sink.

        Batches are requested one after the other, so the output keeps the order
        of the input. The first failing request aborts the run.

        Args:
            lines (Iterable[str]): Identifier lines; blank lines are skipped.
            sink (BinaryIO): Destination of the raw response bodies.

        Returns:
            int: Number of lookup requests made.
        """
        requests = 0
        ids_seen = 0
        for batch in batched(read_lines(lines), self._config.id_batch_size):
            body = await self._client.do_lookup(index=self._config.index, ids=batch)
            sink.write(body)
            sink.write(b"\n")
            requests += 1
            ids_seen += len(batch)
            self.logging.debug("Looked up batch %d (%d ids so far)", requests, ids_seen)
        self.logging.info("Looked up %d ids in %d requests", ids_seen, requests)
        return requests
