"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from tmc_runner.config import (
    DEFAULT_TIMEOUT_MS,
    OrchestratorConfig,
    config_from_data,
    load_config,
    load_defaults,
)
from tmc_runner.errors import ConfigError


class TestLoadDefaults:

    def test_bundled_defaults(self) -> None:
        defaults = load_defaults()
        assert defaults.group == "fi.helsinki.cs.tmc"
        assert defaults.artifact == "tmc-python-runner"
        assert defaults.version
        assert defaults.entry_point == "tmc_python_runner"

    def test_loaded_once(self) -> None:
        assert load_defaults() is load_defaults()


class TestOrchestratorConfig:

    def test_defaults_resolved_against_base_dir(self, tmp_path: Path) -> None:
        config = OrchestratorConfig(base_dir=tmp_path)

        assert config.test_roots == [tmp_path / "tests"]
        assert config.results_file == tmp_path / "build" / "test_output.txt"
        assert config.stdout_file == tmp_path / "build" / "test_stdout.txt"
        assert config.stderr_file == tmp_path / "build" / "test_stderr.txt"
        assert config.timeout_ms == DEFAULT_TIMEOUT_MS
        assert config.runner_version is None
        assert config.repository.offline is False

    def test_absolute_paths_kept(self, tmp_path: Path) -> None:
        results = tmp_path / "elsewhere" / "out.json"
        config = OrchestratorConfig(base_dir=tmp_path / "proj", results_file=results)
        assert config.results_file == results


class TestLoadConfig:

    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "tmc-runner.yaml"
        path.write_text(yaml.safe_dump({
            "project": {"test_roots": ["test"], "paths": ["lib", "test"], "venv": "env"},
            "output": {"results_file": "out/results.json"},
            "runner": {"version": 2.1, "timeout_ms": "5000"},
            "repository": {
                "local_cache": str(tmp_path / "cache"),
                "offline": True,
                "servers": [{"id": "pypi", "url": "https://pypi.org/simple"}],
                "mirrors": [{"id": "m", "url": "https://mirror.example/simple", "mirror_of": "pypi"}],
                "proxies": [{"host": "proxy.example", "port": "3128"}],
            },
        }))

        config = load_config(path)

        assert config.base_dir == tmp_path.resolve()
        assert config.test_roots == [tmp_path.resolve() / "test"]
        assert config.project_paths == [Path("lib"), Path("test")]
        assert config.venv_path == tmp_path.resolve() / "env"
        assert config.results_file == tmp_path.resolve() / "out" / "results.json"
        assert config.runner_version == "2.1"
        assert config.timeout_ms == 5000
        assert config.repository.offline is True
        assert config.repository.local_cache == tmp_path / "cache"
        assert config.repository.index_urls() == ["https://mirror.example/simple"]
        assert config.repository.active_proxy.port == 3128

    def test_multiple_test_roots_are_loaded(self, tmp_path: Path) -> None:
        config = config_from_data({"project": {"test_roots": ["a", "b"]}}, base_dir=tmp_path)
        assert len(config.test_roots) == 2

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path).test_roots == [tmp_path.resolve() / "tests"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("project: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_section_must_be_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="'runner' must be a mapping"):
            config_from_data({"runner": "1.0"}, base_dir=tmp_path)

    def test_server_requires_url(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="repository.servers\\[0\\].url"):
            config_from_data({"repository": {"servers": [{"id": "x"}]}}, base_dir=tmp_path)

    def test_bad_timeout(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="timeout_ms"):
            config_from_data({"runner": {"timeout_ms": "soon"}}, base_dir=tmp_path)
