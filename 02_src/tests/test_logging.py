"""Tests for structured logging."""

import json
import logging

from chat_core.logging_config import JSONFormatter, setup_logging


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def _record(self, **extra):
        record = logging.LogRecord(
            name="chat_core.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=10,
            msg="Message %s delivered",
            args=(7,),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_format_fields(self):
        """Test that the record is rendered as one JSON object."""
        data = json.loads(JSONFormatter().format(self._record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "chat_core.test"
        assert data["message"] == "Message 7 delivered"
        assert "context" not in data

    def test_format_context(self):
        """Test that extra context is included and non-JSON values stringified."""
        data = json.loads(
            JSONFormatter().format(self._record(context={"sender_id": 1, "path": object()}))
        )

        assert data["context"]["sender_id"] == 1
        assert isinstance(data["context"]["path"], str)


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_writes_json_to_file(self, tmp_path):
        """Test that records land in the log file as JSON lines."""
        log_file = tmp_path / "logs" / "app.log"
        setup_logging(log_level="info", log_file=str(log_file), console=False)

        logging.getLogger("chat_core.test").info("hello", extra={"context": {"k": "v"}})
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["context"] == {"k": "v"}
        assert logging.getLogger("aiosqlite").level == logging.WARNING
