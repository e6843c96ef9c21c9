"""Test configuration and fixtures."""

from collections.abc import Callable
from pathlib import Path

import pytest
from fakes import FakeClock, FakeTracker

from resolved_refs.config import ResolvedConfig


@pytest.fixture
def config() -> ResolvedConfig:
    """Default config with debouncing shortened for tests."""
    return ResolvedConfig(debounce_ms=10)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[[dict[str, str | bytes]], list[Path]]:
    """Create files under tmp_path and return their paths in given order."""

    def _write(files: dict[str, str | bytes]) -> list[Path]:
        paths = []
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
            paths.append(path)
        return paths

    return _write
