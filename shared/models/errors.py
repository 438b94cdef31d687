"""Error types raised by the search clients and the dump services."""


class EsdumpError(Exception):
    """Base class for every error raised while dumping documents."""


class TransportError(EsdumpError):
    """The request could not be sent or the connection failed synchronously."""


class BodyReadError(TransportError):
    """The response body was cut off while it was being read (e.g. unexpected EOF)."""


class RequestFailedError(EsdumpError):
    """The backend answered with a non-2xx status code."""

    def __init__(self, url: str, status_code: int, body: str = ""):
        super().__init__(f"Request to {url} failed with status {status_code}")
        self.url = url
        self.status_code = status_code
        self.body = body


class ProtocolError(EsdumpError):
    """The response body is not a valid search response envelope."""


class MaxRetriesExceededError(EsdumpError):
    """Reading a scroll page failed more often than the retry budget allows."""

    def __init__(self, max_retries: int):
        super().__init__("max retries exceeded")
        self.max_retries = max_retries


class QueryJobError(EsdumpError):
    """A single query of a multi-query run failed."""

    def __init__(self, query: str, reason: Exception):
        super().__init__(f"Query '{query}' failed: {reason}")
        self.query = query
