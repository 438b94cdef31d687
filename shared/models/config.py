from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required for a env setting.

    Attributes:
        env_key (str): The key/name of the environment variable to read.
        val_type (str): The expected type of the environment variable's value. Supported types are "string" and "number".
        default (str | int | float | None): An optional default value if the environment variable is not set. If None, the variable is required and an error will be raised if it is not set.
    """

    env_key: str
    val_type: str
    default: str | int | float | None = None


class InitStrategy(str, Enum):
    """How the initiating scroll request carries the query."""

    BODY = "body"
    QUERY_STRING = "query_string"


class DefaultOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class DumpConfig(BaseModel):
    """
    Settings of a single dump run. Built once by the command line and handed to
    every service constructor.

    Attributes:
        server (str): Base URL of the search cluster, e.g. "http://localhost:9200".
        index (str): Index (or comma separated indices / alias) to read from.
        query (str): The query, already normalized to the wire format for the
                     body strategy, or the raw query string for the query_string strategy.
        scroll (str): Time-to-live of the scroll context, e.g. "10m".
        size (int): Number of hits requested per page.
        concurrency (int): Maximum number of in-flight requests in multi-query mode.
        limit (int): Stop the scroll once at least this many documents were received. 0 means no limit.
        max_retries (int): Consecutive truncated body reads tolerated per scroll page.
        retry_delay (float): Seconds to wait between two attempts of the same scroll page.
        default_operator (DefaultOperator): Boolean operator used when wrapping plain query strings.
        init_strategy (InitStrategy): How the initiating scroll request carries the query.
        id_batch_size (int): Number of identifiers per lookup request.
    """

    model_config = ConfigDict(frozen=True)

    server: str = "http://localhost:9200"
    index: str = "_all"
    query: str = ""
    scroll: str = "10m"
    size: int = Field(default=1000, ge=1)
    concurrency: int = Field(default=4, ge=1)
    limit: int = Field(default=0, ge=0)
    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=10.0, ge=0)
    default_operator: DefaultOperator = DefaultOperator.OR
    init_strategy: InitStrategy = InitStrategy.BODY
    id_batch_size: int = Field(default=100, ge=1)
