"""Logging setup."""

import logging

import pytest
import structlog

from multitenant_sql.core import logging as tenant_logging
from multitenant_sql.core.config import settings
from multitenant_sql.plan import Table, select_from
from multitenant_sql.rewriter import rewrite


@pytest.fixture
def library_logger():
    logger = logging.getLogger(tenant_logging.LIBRARY_LOGGER)
    level = logger.level
    yield logger
    logger.setLevel(level)


def _configured(monkeypatch, debug):
    captured = {}
    monkeypatch.setattr(settings, "DEBUG", debug)
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: None)
    monkeypatch.setattr(structlog, "configure", lambda **kwargs: captured.update(kwargs))
    tenant_logging.configure_logging()
    return captured


def test_json_renderer_in_production(monkeypatch, library_logger):
    configured = _configured(monkeypatch, False)
    processors = configured["processors"]

    assert structlog.contextvars.merge_contextvars in processors
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)
    assert isinstance(configured["logger_factory"], structlog.stdlib.LoggerFactory)
    assert library_logger.level == logging.INFO


def test_console_renderer_in_debug(monkeypatch, library_logger):
    processors = _configured(monkeypatch, True)["processors"]

    assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
    assert library_logger.level == logging.DEBUG


def test_library_is_silent_until_configured(registry, capsys):
    rewrite(select_from(Table("orders")).ast, registry=registry, tenant_id="t1")

    out, err = capsys.readouterr()
    assert out == ""
    assert err == ""


def test_events_go_through_stdlib_logging(registry, caplog):
    caplog.set_level(logging.DEBUG, logger=tenant_logging.LIBRARY_LOGGER)

    rewrite(select_from(Table("orders")).ast, registry=registry, tenant_id="t1")

    records = [r for r in caplog.records if "Injected tenant clause" in r.getMessage()]
    assert records
    assert records[0].name == "multitenant_sql.rewriter.rewriter"
