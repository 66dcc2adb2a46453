"""Shared fixtures for gitlet tests."""

from pathlib import Path

import pytest
from loguru import logger

from gitlet.config import Config
from gitlet.version_control import Repository


@pytest.fixture(autouse=True)
def reset_loguru():
    """Drop any sinks a test installed so files in temp dirs get closed."""
    yield
    logger.remove()


@pytest.fixture
def repo(tmp_path: Path) -> Repository:
    """An initialized, saved repository in a temporary directory."""
    repository = Repository(tmp_path, config=Config())
    repository.initialize()
    repository.save()
    return repository
