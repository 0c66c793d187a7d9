# ruff: noqa

from __future__ import annotations

import json
import logging

import pytest

from taskboard.core.logging import (
    ROOT_LOGGER_NAME,
    JsonFormatter,
    TextFormatter,
    build_formatter,
    configure_logging,
    get_logger,
)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="taskboard.services.store",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="store.mutation.%s",
        args=("rejected",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_get_logger_namespaces_under_root() -> None:
    assert get_logger("taskboard.services.store").name == "taskboard.services.store"
    assert get_logger("thirdparty").name == f"{ROOT_LOGGER_NAME}.thirdparty"


def test_text_formatter_appends_sorted_extras() -> None:
    line = TextFormatter(use_utc=True).format(_record(error_code="capacity_exceeded", board_id="b1"))

    assert "INFO taskboard.services.store store.mutation.rejected" in line
    assert line.endswith("board_id=b1 error_code=capacity_exceeded")


def test_json_formatter_emits_one_object_with_extras() -> None:
    payload = json.loads(JsonFormatter(use_utc=True).format(_record(description="move task")))

    assert payload["message"] == "store.mutation.rejected"
    assert payload["level"] == "INFO"
    assert payload["description"] == "move task"
    assert payload["timestamp"].endswith("+00:00")


def test_build_formatter_selects_by_name() -> None:
    assert isinstance(build_formatter("json"), JsonFormatter)
    assert isinstance(build_formatter("text"), TextFormatter)


def test_configure_logging_installs_single_handler() -> None:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    saved = (list(root.handlers), root.level, root.propagate)
    try:
        configure_logging(level="debug", log_format="json")
        logger = configure_logging(level="warning", log_format="text")

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, TextFormatter)
        assert logger.level == logging.WARNING
        assert logger.propagate is False
    finally:
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])
        root.propagate = saved[2]
