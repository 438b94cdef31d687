from abc import abstractmethod

import pydantic

from shared.clients.ClientInterface import ClientInterface
from shared.clients.search.models.Scroll import ScrollResponse
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import InitStrategy
from shared.models.errors import ProtocolError


class SearchClientInterface(ClientInterface):
    """Read-only client for a search backend that supports scrolling.

    Every request is a GET, bodies included, so the client also works against
    proxies that reject all other verbs.
    """

    def __init__(self, helper_config: HelperConfig, server: str):
        super().__init__(helper_config=helper_config, server=server)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "search"
        """
        return "search"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_search(self, index: str) -> str:
        """
        Returns the endpoint path for search requests against an index.

        Args:
            index (str): The index, list of indices or alias to search.

        Returns:
            str: The endpoint path (e.g. "/my_index/_search")
        """
        pass

    @abstractmethod
    def _get_endpoint_scroll(self) -> str:
        """
        Returns the endpoint path for scroll continuation requests.

        Returns:
            str: The endpoint path (e.g. "/_search/scroll")
        """
        pass

    @abstractmethod
    def _get_endpoint_lookup(self, index: str) -> str:
        """
        Returns the endpoint path for lookups by document identifier.

        Args:
            index (str): The index to look documents up in.

        Returns:
            str: The endpoint path (e.g. "/my_index/_mget")
        """
        pass

    ########### PAYLOAD BUILDER ##############
    @abstractmethod
    def get_scroll_start_params(self, scroll: str, size: int, query: str | None = None) -> dict:
        """
        Returns the URL parameters of the initiating scroll request.

        Args:
            scroll (str): Time-to-live of the scroll context, e.g. "10m".
            size (int): Number of hits per page.
            query (str | None): Query string to send in the URL, None if the query travels in the body.
        """
        pass

    @abstractmethod
    def get_scroll_payload(self, scroll: str, scroll_id: str) -> dict:
        """
        Returns the body of a scroll continuation request.

        Args:
            scroll (str): Time-to-live of the scroll context.
            scroll_id (str): Continuation token of the previous page, unchanged.
        """
        pass

    @abstractmethod
    def get_query_params(self, query: str, size: int) -> dict:
        """
        Returns the URL parameters of a single, non-paginated query.
        """
        pass

    @abstractmethod
    def get_lookup_payload(self, ids: list[str]) -> dict:
        """
        Returns the body of a lookup by identifiers.
        """
        pass

    ########### RESPONSE PARSER ##############
    def parse_scroll_response(self, raw: bytes) -> ScrollResponse:
        """
        Decodes the envelope of a search or scroll response.

        Args:
            raw (bytes): The complete response body.

        Returns:
            ScrollResponse: The decoded envelope.

        Raises:
            ProtocolError: If the body is not JSON or misses the hits section.
        """
        try:
            return ScrollResponse.model_validate_json(raw)
        except pydantic.ValidationError as e:
            raise ProtocolError(f"invalid search response from {self.get_engine_name()}: {e.error_count()} error(s), first: {e.errors()[0]['msg']}") from e

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_scroll_start(self, index: str, query: str, scroll: str, size: int, strategy: InitStrategy = InitStrategy.BODY) -> bytes:
        """Open a scroll context and fetch its first page.

        Args:
            index (str): The index to scroll over.
            query (str): JSON query for the body strategy, query string for the query_string strategy.
            scroll (str): Time-to-live of the scroll context.
            size (int): Number of hits per page.
            strategy (InitStrategy): Whether the query travels in the body or in the URL.

        Returns:
            bytes: The raw response body.
        """
        if strategy == InitStrategy.QUERY_STRING:
            return await self.do_request_raw(
                method="GET",
                params=self.get_scroll_start_params(scroll, size, query=query),
                endpoint=self._get_endpoint_search(index),
            )
        return await self.do_request_raw(
            method="GET",
            content=query,
            params=self.get_scroll_start_params(scroll, size),
            endpoint=self._get_endpoint_search(index),
            additional_headers={"Content-Type": "application/json"},
        )

    async def do_scroll_next(self, scroll: str, scroll_id: str) -> bytes:
        """Fetch the next page of an open scroll context.

        Returns:
            bytes: The raw response body.

        Raises:
            BodyReadError: If the body was cut off in transit; the request may be repeated.
        """
        return await self.do_request_raw(
            method="GET",
            json=self.get_scroll_payload(scroll, scroll_id),
            endpoint=self._get_endpoint_scroll(),
        )

    async def do_query(self, index: str, query: str, size: int) -> bytes:
        """Run a single query without pagination.

        Returns:
            bytes: The raw response body.
        """
        return await self.do_request_raw(
            method="GET",
            params=self.get_query_params(query, size),
            endpoint=self._get_endpoint_search(index),
        )

    async def do_lookup(self, index: str, ids: list[str]) -> bytes:
        """Fetch documents by identifier.

        Returns:
            bytes: The raw response body.
        """
        return await self.do_request_raw(
            method="GET",
            json=self.get_lookup_payload(ids),
            endpoint=self._get_endpoint_lookup(index),
        )
