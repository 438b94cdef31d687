from abc import ABC, abstractmethod

import httpx
from httpx._types import QueryParamTypes, RequestContent
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import BodyReadError, ProtocolError, RequestFailedError, TransportError


# failures that can only happen while the body is streamed in
BODY_READ_ERRORS = (httpx.ReadError, httpx.RemoteProtocolError, httpx.ReadTimeout)


class ClientInterface(ABC):
    def __init__(self, helper_config: HelperConfig, server: str):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self._server = server
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=60.0)

        # client and config
        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Validates that all required configuration values for the client are set and valid.

        Raises:
            ValueError: If any required configuration value is missing or invalid.
        """
        if not self._server.strip():
            raise ValueError(f"No server URL given for {self.get_client_type().upper()} client '{self.get_engine_name()}'.")
        req_config = self._get_required_config()
        for config in req_config:
            _ = self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        """
        Returns the type of the client in lowercase. E.g. "search"
        """
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "search"
        """
        pass

    def get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client. E.g. "elasticsearch"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client. E.g. "Elasticsearch"
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns all required configurations for the client.

        Returns:
            list[EnvConfig]: A list containing the details of each required configuration key.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """
        Returns:
            str: The full configuration key name for the client. E.g. "SEARCH_ELASTICSEARCH_API_KEY"
        """
        key_prefix = f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}"
        return f"{key_prefix}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Retrieves the value of a configuration key for the client.

        Args:
            raw_key (str): The raw configuration key name
            default (Any): The default value to return if the configuration key is not set
            val_type (str): The type of the configuration value ("string", "number")
        """
        key = self._get_config_key_name(raw_key)
        if val_type == "string":
            return self._helper_config.get_string_val(key, default=default)
        elif val_type == "number":
            return self._helper_config.get_number_val(key, default=default)
        else:
            raise ValueError(f"Unsupported config value type '{val_type}' for env key '{raw_key}' in {self.get_client_type().upper()} client '{self.get_engine_name()}'.")

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the authentication header for the client backend server, if an API key is set.

        Returns:
            dict: A dictionary containing the auth data
        """
        pass

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        """
        Returns:
            str: The base URL of the backend server without trailing slash (e.g. "http://localhost:9200")
        """
        return self._server.strip().rstrip("/")

    ################ TRANSPORT ##################
    def _get_transport_retries(self) -> int:
        """
        Returns the number of connection retries the transport makes on its own.
        Only connect failures are retried there, never a request that reached the server.
        """
        return 0

    def _build_transport(self) -> httpx.AsyncBaseTransport:
        """Build the transport used by the HTTP client."""
        return httpx.AsyncHTTPTransport(retries=self._get_transport_retries())

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialise the HTTP client.

        Args:
            transport: Transport to use instead of the default retrying HTTP transport.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport or self._build_transport())

    async def close(self) -> None:
        """Close the HTTP client and any other resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _build_request(
        self,
        method: str,
        endpoint: str,
        content: RequestContent | None,
        json: Any | None,
        params: QueryParamTypes | None,
        additional_headers: dict | None,
    ) -> httpx.Request:
        if self._client is None:
            raise Exception("HTTP client not initialised. Call boot() before making requests.")

        endpoint = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""

        # Do NOT set a default Content-Type: httpx sets it automatically for json.
        # For content (raw bytes), the caller must pass the correct type via additional_headers.
        headers: dict = {}
        headers.update(self._get_auth_header())
        if additional_headers:
            headers.update(additional_headers)

        kwargs: dict = {
            "url": f"{self._get_base_url()}{endpoint}",
            "headers": headers,
            "params": params,
        }

        # add exactly one body argument
        if content is not None:
            kwargs["content"] = content
        elif json is not None:
            kwargs["json"] = json

        return self._client.build_request(method, **kwargs)

    async def do_request_raw(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        json: Any | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
    ) -> bytes:
        """Send an HTTP request and return the response body as bytes.

        Headers and body are read in two steps so a body cut off in transit can be
        told apart from a request that never got an answer.

        Returns:
            bytes: The complete response body.

        Raises:
            TransportError: If the request could not be built or sent.
            BodyReadError: If the connection broke while the body was read.
            ProtocolError: If the body cannot be decoded as its Content-Encoding says.
            RequestFailedError: On a non-2xx status.
        """
        try:
            request = self._build_request(method, endpoint, content, json, params, additional_headers)
        except httpx.InvalidURL as e:
            raise TransportError(f"invalid request URL for {self._get_base_url()}: {e}") from e
        try:
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            raise TransportError(f"{method} {request.url} failed: {e!r}") from e
        try:
            try:
                body = await response.aread()
            except BODY_READ_ERRORS as e:
                raise BodyReadError(f"failed to read response body of {request.url}: {e!r}") from e
            except httpx.DecodingError as e:
                raise ProtocolError(f"cannot decode response body of {request.url}: {e}") from e
            except httpx.TransportError as e:
                raise TransportError(f"{method} {request.url} failed: {e!r}") from e
        finally:
            await response.aclose()
        self._raise_for_status(request, response)
        return body

    def _raise_for_status(self, request: httpx.Request, response: httpx.Response) -> None:
        if response.status_code >= 300:
            self.logging.error(
                "Request to %s failed with status %d: %s",
                request.url,
                response.status_code,
                response.text[:1024],
            )
            raise RequestFailedError(str(request.url), response.status_code, response.text)
