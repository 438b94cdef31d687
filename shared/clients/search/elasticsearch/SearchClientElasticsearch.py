from urllib.parse import quote

from shared.helper.HelperConfig import HelperConfig
from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.models.config import EnvConfig


class SearchClientElasticsearch(SearchClientInterface):
    def __init__(self, helper_config: HelperConfig, server: str):
        super().__init__(helper_config=helper_config, server=server)
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._transport_retries = int(self.get_config_val("TRANSPORT_RETRIES", default=3, val_type="number"))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Elasticsearch"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="TRANSPORT_RETRIES", val_type="number", default=3),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"ApiKey {self._api_key}"}
        else:
            return {}

    ################ TRANSPORT ##################
    def _get_transport_retries(self) -> int:
        return self._transport_retries

    ################ ENDPOINTS ##################
    def _get_endpoint_search(self, index: str) -> str:
        return f"/{quote(index, safe=',*')}/_search"

    def _get_endpoint_scroll(self) -> str:
        return "/_search/scroll"

    def _get_endpoint_lookup(self, index: str) -> str:
        return f"/{quote(index, safe=',*')}/_mget"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_scroll_start_params(self, scroll: str, size: int, query: str | None = None) -> dict:
        params = {"scroll": scroll, "size": size}
        if query is not None:
            params["q"] = query
        return params

    def get_scroll_payload(self, scroll: str, scroll_id: str) -> dict:
        return {"scroll": scroll, "scroll_id": scroll_id}

    def get_query_params(self, query: str, size: int) -> dict:
        return {"size": size, "q": query}

    def get_lookup_payload(self, ids: list[str]) -> dict:
        return {"ids": ids}
