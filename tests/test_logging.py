"""Tests for logging configuration."""

import json
import logging

from knowledge_assistant.utils.logging import (
    JSONFormatter,
    RequestContextFilter,
    get_logger,
    set_request_id,
    set_user_id,
    setup_logging,
)


def make_record(message="Indexed 3 files"):
    return logging.LogRecord("knowledge_assistant.test", logging.INFO, __file__, 1, message, None, None)


def test_get_logger():
    assert get_logger("indexing_service").name == "knowledge_assistant.indexing_service"
    assert get_logger().name == "knowledge_assistant"


def test_setup_logging_is_idempotent():
    logger = setup_logging()
    setup_logging()

    assert logger.name == "knowledge_assistant"
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_context_filter_stamps_request_and_user():
    set_request_id("req-123")
    set_user_id("user-1")
    record = make_record()

    assert RequestContextFilter().filter(record) is True
    assert (record.request_id, record.user_id) == ("req-123", "user-1")

    set_user_id(None)
    RequestContextFilter().filter(record)
    assert record.user_id == "-"


def test_json_formatter_includes_extra_fields():
    record = make_record()
    record.request_id = "req-123"
    record.user_id = "user-1"
    record.extra_fields = {"path": "/api/v1/search", "status_code": 200}

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Indexed 3 files"
    assert data["user_id"] == "user-1"
    assert data["path"] == "/api/v1/search"
    assert data["status_code"] == 200
