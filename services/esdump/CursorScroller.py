"""Scroll session over one query.

Iterates a result set page by page through the scroll API, using only GET
requests. The scroll context is never released explicitly; it expires on the
server once its time-to-live passes.
"""

import asyncio
import time
from typing import AsyncIterator, Awaitable, Callable

from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.clients.search.models.Scroll import ScrollResponse, ScrollState
from shared.helper.HelperConfig import HelperConfig
from shared.helper.query_helper import shorten
from shared.models.config import DumpConfig
from shared.models.errors import BodyReadError, MaxRetriesExceededError, ProtocolError


class CursorScroller:
    """Fetches the pages of one scroll, one request at a time.

    Usage::

        scroller = CursorScroller(helper_config, client, config)
        while await scroller.advance():
            sink.write(scroller.raw)
        if scroller.err:
            raise scroller.err
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        client: SearchClientInterface,
        config: DumpConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._client = client
        self._config = config
        self._sleep = sleep

        self._state = ScrollState.ACTIVE
        self._err: Exception | None = None
        self._scroll_id = ""
        self._raw = b""
        self._total = 0
        self._started: float | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def state(self) -> ScrollState:
        return self._state

    @property
    def err(self) -> Exception | None:
        """The error that ended the session, None while it is active."""
        return self._err

    @property
    def scroll_id(self) -> str:
        """Continuation token of the last page, empty before the first request."""
        return self._scroll_id

    @property
    def raw(self) -> bytes:
        """Body of the last page. Only meaningful right after advance() returned True."""
        return self._raw

    @property
    def text(self) -> str:
        return self._raw.decode("utf-8", errors="replace")

    @property
    def total(self) -> int:
        """Number of documents received so far."""
        return self._total

    @property
    def elapsed(self) -> float:
        """Seconds since the first call to advance()."""
        if self._started is None:
            return 0.0
        return time.monotonic() - self._started

    def __bytes__(self) -> bytes:
        return self._raw

    def __str__(self) -> str:
        return self.text

    ##########################################
    ################ SCROLL ##################
    ##########################################

    async def advance(self) -> bool:
        """Fetch the next page.

        Returns:
            bool: True if a page was received and the scroll may continue. False once
                  the scroll is exhausted or failed; check err to tell both apart.
        """
        if self._state == ScrollState.TERMINAL:
            return False
        try:
            if self._started is None:
                return await self._start()
            return await self._next()
        except Exception as e:
            self._state = ScrollState.TERMINAL
            self._err = e
            self.logging.error("Scroll over '%s' stopped after %d documents: %s", self._config.index, self._total, e)
            return False

    async def _start(self) -> bool:
        self._started = time.monotonic()
        self.logging.debug(
            "init: %s/%s scroll=%s size=%d (%s)",
            self._config.server, self._config.index, self._config.scroll, self._config.size, self._config.init_strategy.value,
        )
        raw = await self._client.do_scroll_start(
            index=self._config.index,
            query=self._config.query,
            scroll=self._config.scroll,
            size=self._config.size,
            strategy=self._config.init_strategy,
        )
        page = self._accept(raw)
        self.logging.debug("init: %s, %d of %s documents", shorten(self._scroll_id, 50), self._total, page.reported_total)
        # the first page never ends the scroll, an empty result ends it on the next call
        return True

    async def _next(self) -> bool:
        failures = 0
        while True:
            try:
                raw = await self._client.do_scroll_next(scroll=self._config.scroll, scroll_id=self._scroll_id)
                break
            except BodyReadError as e:
                failures += 1
                if failures >= self._config.max_retries:
                    raise MaxRetriesExceededError(self._config.max_retries) from e
                self.logging.warning(
                    "%s, retrying in %ss (%d/%d)", e, self._config.retry_delay, failures, self._config.max_retries,
                )
                await self._sleep(self._config.retry_delay)

        page = self._accept(raw)
        reported = page.reported_total
        if reported:
            self.logging.debug(
                "fetched=%d/%d (%0.2f%%), received=%d bytes",
                self._total, reported, self._total / reported * 100, len(raw), color="cyan",
            )
        else:
            self.logging.debug("fetched=%d/%s, received=%d bytes", self._total, reported, len(raw), color="cyan")

        if page.hit_count == 0 and reported is not None and self._total != reported:
            self.logging.warning(
                "Partial result: scroll ended after %d documents, server reported %d", self._total, reported,
            )
        return page.hit_count > 0 and (reported is None or self._total <= reported)

    def _accept(self, raw: bytes) -> ScrollResponse:
        """Decode a page and take over its token and hit count."""
        page = self._client.parse_scroll_response(raw)
        if page.scroll_id is None:
            raise ProtocolError("search response carries no _scroll_id")
        self._scroll_id = page.scroll_id
        self._total += page.hit_count
        self._raw = raw
        return page

    async def __aiter__(self) -> AsyncIterator[bytes]:
        """Yield the raw body of every page until the scroll ends or fails."""
        while await self.advance():
            yield self._raw
