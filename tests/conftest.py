# tests/conftest.py

"""Shared pytest fixtures for the Trade Hub tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from settings import Settings


@pytest.fixture(autouse=True)
def tmp_logs_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Send per-run log files to a temp directory."""
    logs_dir = tmp_path / "logs"
    with patch.object(Settings, "LOGS_DIR", logs_dir):
        yield logs_dir
