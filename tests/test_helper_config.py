import logging

import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger, setup_logging


@pytest.fixture
def config():
    return HelperConfig(logger=logging.getLogger("esdump.tests"))


def test_string_val(config, monkeypatch):
    monkeypatch.setenv("ESDUMP_TEST_STRING", "  value ")
    assert config.get_string_val("esdump_test_string") == "value"
    assert config.get_string_val("ESDUMP_TEST_MISSING", default="x") == "x"
    with pytest.raises(ValueError):
        config.get_string_val("ESDUMP_TEST_MISSING")


def test_number_val(config, monkeypatch):
    monkeypatch.setenv("ESDUMP_TEST_INT", "3")
    monkeypatch.setenv("ESDUMP_TEST_FLOAT", "0.5")
    monkeypatch.setenv("ESDUMP_TEST_BAD", "ten")
    assert config.get_number_val("ESDUMP_TEST_INT") == 3
    assert config.get_number_val("ESDUMP_TEST_FLOAT") == 0.5
    with pytest.raises(ValueError):
        config.get_number_val("ESDUMP_TEST_BAD")


def test_setup_logging_levels(tmp_path, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setenv("ESDUMP_LOG_DIR", str(tmp_path))
    try:
        logger = setup_logging(verbose=True)
        assert isinstance(logger, ColorLogger)
        assert logging.getLogger().level == logging.DEBUG

        logger.info("page fetched", color="cyan")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "page fetched" in (tmp_path / "esdump.log").read_text(encoding="utf-8")

        monkeypatch.delenv("ESDUMP_LOG_DIR")
        setup_logging(verbose=False)
        assert logging.getLogger().level == logging.WARNING
    finally:
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
