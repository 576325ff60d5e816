"""Pytest configuration and fixtures for debugbin tests."""

import sys
import tempfile
from pathlib import Path

import pytest

from debugbin.core.log import ConsoleSink, setup_logger


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure console-only logging at debug level for the session."""
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "debugbin-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def mock_argv():
    """Save and restore sys.argv."""
    original = sys.argv.copy()
    sys.argv = ["debugbin"]
    yield
    sys.argv = original


@pytest.fixture
def make_state(tmp_path, monkeypatch, mock_argv):
    """Build a State for a project rooted at tmp_path.

    Keyword arguments are merged into the matching config sections,
    e.g. make_state(build={"command": "echo hi"}).
    """
    from debugbin.core.config import State

    monkeypatch.chdir(tmp_path)

    def _make(**sections):
        config = {
            "build": {"workdir": str(tmp_path)},
            "log_root": str(tmp_path / "logs"),
            "logger": {"console": {"enabled": False}},
        }
        for section, values in sections.items():
            config.setdefault(section, {}).update(values)
        return State(config=config)

    return _make
