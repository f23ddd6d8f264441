import json
import logging

from bot.utils.logging import JsonFormatter, get_logger


def test_json_formatter_schema() -> None:
    record = logging.LogRecord("bot.router", logging.WARNING, __file__, 1, "switching %s", ("now",), None)
    record.event_type = "provider_fallback"
    record.user_id = "U1"
    record.metadata = {"provider": "openai", "kind": "quota"}

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["module"] == "bot.router"
    assert payload["event_type"] == "provider_fallback"
    assert payload["user_id"] == "U1"
    assert payload["message"] == "switching now"
    assert payload["metadata"] == {"provider": "openai", "kind": "quota"}


def test_get_logger_writes_to_file_once(tmp_path) -> None:
    path = tmp_path / "logs" / "bot.log"
    logger = get_logger("bot-test-file", path=str(path))
    again = get_logger("bot-test-file", path=str(path))

    logger.info("hello", extra={"event_type": "startup"})
    for handler in logger.handlers:
        handler.flush()

    assert logger is again
    assert len(logger.handlers) == 1
    line = json.loads(path.read_text(encoding="utf-8").strip())
    assert line["event_type"] == "startup"
