"""Shared fixtures."""
from __future__ import annotations

import logging

import pytest

from linkcrawl.config import CrawlOptions
from linkcrawl.log import log


@pytest.fixture
def options(tmp_path) -> CrawlOptions:
    """Options for crawls that use an injected simulate hook."""
    return CrawlOptions(on_error_output=None, detect_firebase_hosting=False, project_dir=tmp_path)


@pytest.fixture(autouse=True)
def reset_logging():
    # the CLI installs a console handler bound to the captured stderr
    yield
    log.handlers.clear()
    log.setLevel(logging.NOTSET)
