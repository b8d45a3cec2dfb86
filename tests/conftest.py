"""Shared fixtures for the auditmirror test suite."""

from collections.abc import Callable, Generator, Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path

import pytest
import structlog

from auditmirror.audit.drivers import MySQLDriver, PostgresDriver
from tests.factories import FakeDatabase


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Empty config directory under tmp_path."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Write TOML files into ``test_config_dir``.

    Usage:
        mock_toml_files({"default.toml": "dialect = 'mysql'"})
    """

    def _write(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _write


@pytest.fixture
def env_override(
    monkeypatch: pytest.MonkeyPatch,
) -> Callable[[dict[str, str]], AbstractContextManager[None]]:
    """Set environment variables for the duration of a ``with`` block.

    Usage:
        with env_override({"AUDITMIRROR_DIALECT": "mysql"}):
            ...
    """

    @contextmanager
    def _override(values: dict[str, str]) -> Iterator[None]:
        with monkeypatch.context() as patch:
            for key, value in values.items():
                patch.setenv(key, value)
            yield

    return _override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Isolate tests from each other's cached settings and TOML values."""
    from auditmirror.config import get_settings
    from auditmirror.config.settings import set_toml_config

    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any setup_logging() call so capture_logs keeps working."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def audit_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def primary_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def mysql_driver() -> MySQLDriver:
    return MySQLDriver()


@pytest.fixture
def postgres_driver() -> PostgresDriver:
    return PostgresDriver()
