# File: tests/conftest.py
from collections.abc import Callable
from pathlib import Path
from typing import Dict

import pytest

from font_spider.config import SpiderConfig
from font_spider.logger import configure


@pytest.fixture(autouse=True)
def quiet_logger():
    """
    Keep the project logger bound to the real stderr at WARNING between tests.
    CliRunner swaps sys.stderr, so a handler created inside it must not leak.
    """
    configure(level="WARNING")
    yield
    configure(level="WARNING")


@pytest.fixture()
def config() -> SpiderConfig:
    """
    Return a default SpiderConfig with a short remote timeout.
    """
    return SpiderConfig(resource_timeout_ms=2000)


@pytest.fixture()
def site(tmp_path) -> Callable[[Dict[str, str]], Path]:
    """
    Write a tree of files under tmp_path and return the root.

    Usage: ``root = site({"index.html": "...", "css/a.css": "..."})``
    """

    def write(files: Dict[str, str]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return write

