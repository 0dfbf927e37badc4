"""Shared fixtures."""

import logging
import os

import pytest

from factories import FakeCatalog
from indexprof.core import logger as logger_module
from indexprof.core.constants import APP_NAME
from indexprof.core.config import reset_settings


@pytest.fixture
def catalog_t() -> FakeCatalog:
    """Catalog where table t has indexes b, c and the primary key"""
    return FakeCatalog({"t": ["b", "c", "PRIMARY"]})


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    for key in list(os.environ):
        if key.startswith("INDEXPROF_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    app_logger = logging.getLogger(APP_NAME)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    app_logger.setLevel(logging.NOTSET)
    logger_module._app_logger = None
