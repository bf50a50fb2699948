"""Logging configuration tests for dotffi._logging."""

import json
import logging

import dotffi


class TestSetupLogging:

    def test_setup_logging_exported(self):
        assert callable(dotffi.setup_logging)

    def test_default_level_is_warn(self):
        from dotffi._logging import logger, setup_logging

        setup_logging()
        assert logger.level == logging.WARNING

    def test_accepts_string_and_int(self):
        from dotffi._logging import logger, setup_logging

        setup_logging("debug")
        assert logger.level == logging.DEBUG
        setup_logging(logging.ERROR)
        assert logger.level == logging.ERROR

    def test_off_silences_everything(self):
        from dotffi._logging import logger, setup_logging

        setup_logging("off")
        assert not logger.isEnabledFor(logging.CRITICAL)

    def test_replaces_handlers(self):
        from dotffi._logging import logger, setup_logging

        logger.addHandler(logging.StreamHandler())
        logger.addHandler(logging.StreamHandler())
        setup_logging("info")
        assert len(logger.handlers) == 1

    def test_format_selects_formatter(self):
        from dotffi._logging import HumanFormatter, JsonFormatter, logger, setup_logging

        setup_logging("info", format="json")
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)
        setup_logging("info", format="human")
        assert isinstance(logger.handlers[0].formatter, HumanFormatter)

    def teardown_method(self):
        from dotffi._logging import setup_logging

        setup_logging("warn")


class TestFormatters:

    def _record(self, **extra):
        record = logging.LogRecord(
            "dotffi", logging.DEBUG, __file__, 1, "Allocated text buffer", (), None
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter(self):
        from dotffi._logging import JsonFormatter

        out = json.loads(JsonFormatter().format(self._record(scope="alloc", size=4)))
        assert out["severityText"] == "DEBUG"
        assert out["body"] == "Allocated text buffer"
        assert out["attributes"] == {"scope": "alloc", "size": 4}
        assert out["timestamp"].endswith("Z")

    def test_human_formatter(self):
        from dotffi._logging import HumanFormatter

        line = HumanFormatter().format(self._record(scope="alloc", size=4))
        assert "DEBUG" in line
        assert "[alloc]" in line
        assert "size=4" in line

    def test_scope_defaults_to_logger_name(self):
        from dotffi._logging import HumanFormatter

        assert "[dotffi]" in HumanFormatter().format(self._record())


def test_allocations_logged_at_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger="dotffi"):
        dotffi.reverse("log me")
    messages = [r.getMessage() for r in caplog.records]
    assert "Allocated text buffer" in messages
    assert "Released text buffer" in messages


def test_logging_types_live_in_stub():
    from pathlib import Path
    import dotffi._logging as logging_module

    stub = Path(logging_module.__file__).with_suffix(".pyi")
    assert stub.exists()
    assert "def setup_logging(" in stub.read_text()
