import logging
import os
import shutil
import stat
from pathlib import Path
from typing import List

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _binary_available(name: str) -> bool:
    """Check if an executable is on PATH.

    Returns
    -------
    bool
        True if ``name`` resolves to an executable, False otherwise.
    """
    return shutil.which(name) is not None


def pytest_collection_modifyitems(config: pytest.Config, items: List[pytest.Item]) -> None:
    """Skip tests that need the real toolchain when it is not installed."""
    requirements = {
        "requires_elm": os.environ.get("ELM_COMPILER_PATH") or "elm",
        "requires_node": os.environ.get("ELM_COMPILER_NODE_PATH") or "node",
    }
    for marker, binary in requirements.items():
        if _binary_available(binary):
            continue
        skip = pytest.mark.skip(reason=f"{binary} not available on PATH, skip test")
        for item in items:
            if any(item.iter_markers(name=marker)):
                item.add_marker(skip)


@pytest.fixture
def fixtures_dir() -> Path:
    """The fixture Elm project (``elm.json`` plus ``src/``)."""
    return FIXTURES_DIR


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test from the default log level."""
    monkeypatch.delenv("ELM_COMPILER_LOG_LEVEL", raising=False)


@pytest.fixture
def package_logs(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Capture INFO records from the ``elm_compiler`` loggers."""
    caplog.set_level(logging.INFO, logger="elm_compiler")
    return caplog


@pytest.fixture
def make_script(tmp_path: Path):
    """Write an executable ``/bin/sh`` script and return its path."""

    def _make(body: str, name: str = "fake-elm") -> Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers and levels installed on the package logger by the code under test."""
    yield
    logger = logging.getLogger("elm_compiler")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
