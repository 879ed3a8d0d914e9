"""Tests for JSON logging setup."""

import json
import logging
from collections.abc import Iterator

import pytest

from ca_tool.lib.logging_config import LOGGER, CustomJsonFormatter, set_verbosity


@pytest.fixture
def reset_level() -> Iterator[None]:
    """Restore the default threshold after each test."""
    yield
    set_verbosity()


class TestSetVerbosity:
    """Tests for --quiet/--verbose mapping."""

    @pytest.mark.parametrize(
        ("quiet", "verbose", "level"),
        [(True, False, logging.WARNING), (False, True, logging.DEBUG), (False, False, logging.INFO)],
    )
    def test_levels(self, reset_level: None, quiet: bool, verbose: bool, level: int) -> None:
        """Each flag combination sets one threshold on the shared logger."""
        logger = set_verbosity(quiet=quiet, verbose=verbose)

        assert logger is LOGGER
        assert LOGGER.level == level

    def test_handler_attached_once(self, reset_level: None) -> None:
        """Changing verbosity never stacks handlers."""
        set_verbosity(verbose=True)
        set_verbosity(quiet=True)

        assert len(LOGGER.handlers) == 1
        assert isinstance(LOGGER.handlers[0], logging.StreamHandler)
        assert LOGGER.propagate is False


class TestCustomJsonFormatter:
    """Tests for the JSON record layout."""

    def test_fields(self) -> None:
        """Only the allowed fields are emitted and levelname becomes level."""
        formatter = CustomJsonFormatter(
            fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
            timestamp=True,
        )
        record = logging.LogRecord(
            name="ca_tool",
            level=logging.INFO,
            pathname=__file__,
            lineno=42,
            msg="Signing %s",
            args=("www.cert.pem",),
            exc_info=None,
            func="create_cert",
        )
        record.request_name = "www"

        payload = json.loads(formatter.format(record))

        assert payload["level"] == "INFO"
        assert payload["message"] == "Signing www.cert.pem"
        assert payload["funcName"] == "create_cert"
        assert payload["lineno"] == 42
        assert "timestamp" in payload
        assert "levelname" not in payload
        assert "request_name" not in payload
