from shared.helper.HelperConfig import HelperConfig
from shared.clients.search.SearchClientInterface import SearchClientInterface


class SearchClientManager:
    """
    Manager class to create the search client based on configuration.
    """

    def __init__(self, helper_config: HelperConfig, server: str):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client(server)

    def _get_engine_from_env(self) -> str:
        """
        Reads the search engine from ENV configuration, defaulting to Elasticsearch.

        Returns:
            str: The name of the search engine, capitalized (e.g. "Elasticsearch").
        """
        engine = self.helper_config.get_string_val("SEARCH_ENGINE", default="elasticsearch")

        #lowercase all and uppcercase first letter for better comparison and display
        return engine.strip().lower().capitalize()

    def _initialize_client(self, server: str) -> SearchClientInterface:
        """
        Initializes the search client for the configured engine.

        Args:
            server (str): Base URL of the search cluster.

        Returns:
            SearchClientInterface: An instance of the search client.

        Raises:
            ValueError: If the configured engine is not supported.
        """
        engine = self._get_engine_from_env()
        className = f"SearchClient{engine}"
        # try to import the class from shared.clients.search.{engine}
        try:
            module = __import__(
                f"shared.clients.search.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported search engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config, server=server)
        self.logging.debug(f"Instantiated search client for engine: {engine}")
        return client

    def get_client(self) -> SearchClientInterface:
        """
        Returns the instantiated search client.

        Returns:
            SearchClientInterface: The search client instance.
        """
        return self.client
