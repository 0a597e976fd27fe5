import logging

import pytest

from tutorials_api.core.logging import LoggingContextFilter, correlation_id_var
from tutorials_api.core.settings import AppSettings
from tutorials_api.db.config import Settings


def _settings(**overrides):
    values = dict(DATABASE_URL=None, POSTGRES_URL=None, POSTGRES_USER=None,
                  POSTGRES_PASSWORD=None, POSTGRES_DB=None)
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_database_url_wins():
    s = _settings(DATABASE_URL="sqlite:///./t.db", POSTGRES_URL="postgresql://x/y")
    assert s.database_url == "sqlite:///./t.db"
    assert s.is_sqlite
    assert s.async_database_url == "sqlite+aiosqlite:///./t.db"
    assert s.sync_database_url == "sqlite:///./t.db"


def test_postgres_urls_are_mapped_to_drivers():
    s = _settings(POSTGRES_URL="postgresql+psycopg://u:p@db:5432/app")
    assert not s.is_sqlite
    assert s.async_database_url == "postgresql+asyncpg://u:p@db:5432/app"
    assert s.sync_database_url == "postgresql://u:p@db:5432/app"


def test_postgres_url_built_from_parts():
    s = _settings(POSTGRES_USER="u", POSTGRES_PASSWORD="p", POSTGRES_DB="app", POSTGRES_HOST="db")
    assert s.database_url == "postgresql://u:p@db:5432/app"


def test_missing_database_configuration():
    with pytest.raises(ValueError):
        _settings().database_url


def test_cors_origins_accept_comma_separated():
    s = AppSettings(_env_file=None, CORS_ORIGINS="http://a.test, http://b.test")
    assert s.CORS_ORIGINS == ["http://a.test", "http://b.test"]


def test_page_size_defaults():
    s = AppSettings(_env_file=None)
    assert s.DEFAULT_PAGE_SIZE == 3
    assert s.MAX_PAGE_SIZE >= s.DEFAULT_PAGE_SIZE


def _record():
    return logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)


def test_logging_filter_injects_correlation_id():
    token = correlation_id_var.set("cid-1")
    try:
        record = _record()
        assert LoggingContextFilter().filter(record)
        assert record.correlation_id == "cid-1"
    finally:
        correlation_id_var.reset(token)


def test_logging_filter_placeholder_without_context():
    record = _record()
    LoggingContextFilter().filter(record)
    assert record.correlation_id == "-"
