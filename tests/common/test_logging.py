import json
import logging

from s3facade.common.logging import JsonFormatter


def _record(**kwargs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="s3facade.services.template",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="delete bucket %s failed",
        args=("media",),
        exc_info=None,
    )
    for key, value in kwargs.items():
        setattr(record, key, value)
    return record


def test_json_formatter_renders_message():
    payload = json.loads(JsonFormatter().format(_record()))

    assert payload == {
        "level": "WARNING",
        "logger": "s3facade.services.template",
        "message": "delete bucket media failed",
    }


def test_json_formatter_merges_extra_mapping():
    payload = json.loads(
        JsonFormatter().format(_record(extra={"bucket": "media", "status": 502}))
    )

    assert payload["bucket"] == "media"
    assert payload["status"] == 502
