"""Shared fixtures."""

from pathlib import Path

import pytest

from tmc_runner.config import RunnerDefaults
from tmc_runner.resolver.coordinate import RepositorySettings


@pytest.fixture
def defaults() -> RunnerDefaults:
    return RunnerDefaults(
        group="g",
        artifact="a",
        version="1.0",
        entry_point="a_runner",
    )


@pytest.fixture
def settings(tmp_path: Path) -> RepositorySettings:
    """Repository settings with an empty local cache."""
    return RepositorySettings(local_cache=tmp_path / "cache")
