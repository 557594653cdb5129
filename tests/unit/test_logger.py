"""Logging setup tests"""
import logging

import pytest

from sheetdesk.helpers.logger import get_logger


@pytest.fixture
def fresh_name(request):
    name = f"sheetdesk.test.{request.node.name}"
    yield name
    log = logging.getLogger(name)
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()


@pytest.mark.unit
class TestGetLogger:

    def test_handlers_attached_once(self, fresh_name, monkeypatch):
        monkeypatch.delenv("SHEETDESK_LOG_FILE", raising=False)

        first = get_logger(fresh_name)
        second = get_logger(fresh_name)

        assert first is second
        assert len(first.handlers) == 1

    def test_optional_log_file(self, fresh_name, monkeypatch, tmp_path):
        path = tmp_path / "sheetdesk.log"
        monkeypatch.setenv("SHEETDESK_LOG_FILE", str(path))

        log = get_logger(fresh_name)
        log.warning("written to file")
        for handler in log.handlers:
            handler.flush()

        assert len(log.handlers) == 2
        assert "written to file" in path.read_text(encoding="utf-8")

    def test_package_logger_is_configured_on_import(self):
        import sheetdesk.helpers  # noqa: F401

        assert logging.getLogger("sheetdesk").handlers
        assert logging.getLogger("sheetdesk.helpers.upload_controller").propagate
