import logging

import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def helper_config(monkeypatch):
    for key in ("SEARCH_ENGINE", "SEARCH_TIMEOUT", "SEARCH_ELASTICSEARCH_API_KEY", "SEARCH_ELASTICSEARCH_TRANSPORT_RETRIES"):
        monkeypatch.delenv(key, raising=False)
    return HelperConfig(logger=ColorLogger(logging.getLogger("esdump.tests")))
