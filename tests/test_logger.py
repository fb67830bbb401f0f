"""Tests for logging setup and correlation ids."""

import logging

import pytest

from craftmcp.mcp import logger as log


class TestContextFilter:
    def test_ids_are_shortened(self) -> None:
        log.set_request_id("0123456789abcdef")
        log.set_session_id("fedcba9876543210")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        try:
            assert log.RequestContextFilter().filter(record)
            assert record.request_id == "01234567"
            assert record.session_id == "fedcba98"
        finally:
            log.clear_request_id()

    def test_unset_ids(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        log.RequestContextFilter().filter(record)
        assert record.request_id == "-"
        assert record.session_id == "-"

    def test_generated_request_id(self) -> None:
        request_id = log.set_request_id()
        try:
            assert log.get_request_id() == request_id
            assert len(request_id) == 36
        finally:
            log.clear_request_id()
        assert log.get_request_id() is None
        assert log.get_session_id() is None


class TestSetupLogging:
    def test_replaces_only_its_own_handler(self) -> None:
        root = logging.getLogger()
        previous_level = root.level
        foreign = logging.NullHandler()
        root.addHandler(foreign)
        try:
            log.setup_logging(logging.DEBUG)
            log.setup_logging(logging.INFO)
            ours = [h for h in root.handlers if any(isinstance(f, log.RequestContextFilter) for f in h.filters)]
            assert len(ours) == 1
            assert foreign in root.handlers
        finally:
            root.removeHandler(foreign)
            for handler in root.handlers[:]:
                if any(isinstance(f, log.RequestContextFilter) for f in handler.filters):
                    root.removeHandler(handler)
            root.setLevel(previous_level)


class TestRequestTimer:
    def test_slow_block_warns(self, caplog) -> None:
        logger = logging.getLogger("craftmcp-test-timer")
        with caplog.at_level(logging.DEBUG, logger="craftmcp-test-timer"):
            with log.RequestTimer(logger, "tool/slow", slow_after_ms=-1) as timer:
                pass
        assert timer.duration_ms is not None
        assert caplog.records[-1].levelno == logging.WARNING
        assert "tool/slow slow" in caplog.records[-1].getMessage()

    def test_failure_is_logged_and_propagates(self, caplog) -> None:
        logger = logging.getLogger("craftmcp-test-timer")
        with caplog.at_level(logging.DEBUG, logger="craftmcp-test-timer"):
            with pytest.raises(ValueError):
                with log.RequestTimer(logger, "tool/broken"):
                    raise ValueError("nope")
        assert caplog.records[-1].levelno == logging.ERROR
        assert "ValueError: nope" in caplog.records[-1].getMessage()
