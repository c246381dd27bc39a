import json
import logging

import pytest

from vt_cli.logging import JsonFormatter, configure_logging, get_logger, redact_mapping


def test_redact_mapping_masks_authorization() -> None:
    redacted = redact_mapping({"Authorization": "Bearer secret", "Content-Type": "application/json"})
    assert redacted == {"Authorization": "***REDACTED***", "Content-Type": "application/json"}


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("vt.client", logging.DEBUG, __file__, 1, "API request", None, None)
    record.method = "GET"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["logger"] == "vt.client"
    assert payload["message"] == "API request"
    assert payload["method"] == "GET"


def test_configure_logging_sets_vt_level() -> None:
    configure_logging("debug", "json")
    assert get_logger("vt").level == logging.DEBUG
    configure_logging()
    assert get_logger("vt").level == logging.WARNING


@pytest.mark.parametrize("level,fmt", [("LOUD", "plain"), ("INFO", "xml")])
def test_configure_logging_rejects_unknown_settings(level: str, fmt: str) -> None:
    with pytest.raises(ValueError):
        configure_logging(level, fmt)
