"""Configuration for test runs.

A run is described by an OrchestratorConfig, built directly by the caller or
loaded from a YAML file:

    project:
      test_roots: [tests]
      paths: [src, tests]
      venv: .venv
    output:
      results_file: build/test_output.txt
      stdout_file: build/test_stdout.txt
      stderr_file: build/test_stderr.txt
    runner:
      version: 0.3.1
      timeout_ms: 60000
    repository:
      local_cache: ~/.tmc/runner-cache
      offline: false
      force_update: false
      servers: [{id: pypi, url: https://pypi.org/simple}]
      mirrors: [{id: corp, url: https://mirror.example/simple, mirror_of: "*"}]
      proxies: [{host: proxy.example, port: 3128}]
"""

import functools
from dataclasses import dataclass, field, fields
from importlib import resources
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .errors import ConfigError
from .resolver.coordinate import (
    DEFAULT_LOCAL_CACHE,
    RepositoryMirror,
    RepositoryProxy,
    RepositoryServer,
    RepositorySettings,
)

DEFAULT_TIMEOUT_MS = 60000
DEFAULT_BUILD_DIR = "build"


@dataclass(frozen=True)
class RunnerDefaults:
    """Bundled coordinate and entry point of the runner library."""
    group: str
    artifact: str
    version: str
    entry_point: str


@functools.lru_cache(maxsize=None)
def load_defaults() -> RunnerDefaults:
    """Load the bundled runner defaults. Read once per process."""
    text = resources.files("tmc_runner").joinpath("defaults.yaml").read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    runner = data.get("runner")
    if not isinstance(runner, dict):
        raise ConfigError("Bundled defaults.yaml has no 'runner' mapping")
    _require_fields(runner, ["group", "artifact", "version", "entry_point"], "runner", "defaults.yaml")
    return RunnerDefaults(**{k: str(runner[k]) for k in ("group", "artifact", "version", "entry_point")})


@dataclass
class OrchestratorConfig:
    """Configuration for one test run."""
    base_dir: Path = field(default_factory=Path.cwd)
    test_roots: list[Path] = field(default_factory=lambda: [Path("tests")])
    project_paths: list[Path] = field(default_factory=lambda: [Path("src"), Path("tests")])
    venv_path: Optional[Path] = None
    results_file: Path = Path(DEFAULT_BUILD_DIR) / "test_output.txt"
    stdout_file: Path = Path(DEFAULT_BUILD_DIR) / "test_stdout.txt"
    stderr_file: Path = Path(DEFAULT_BUILD_DIR) / "test_stderr.txt"
    # Forwarded to the runner, never enforced on the child process.
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    runner_version: Optional[str] = None
    repository: RepositorySettings = field(default_factory=RepositorySettings)

    def __post_init__(self):
        self.base_dir = Path(self.base_dir).expanduser().resolve()
        self.test_roots = [self.resolve_path(p) for p in self.test_roots]
        self.project_paths = [Path(p) for p in self.project_paths]
        if self.venv_path is not None:
            self.venv_path = self.resolve_path(self.venv_path)
        self.results_file = self.resolve_path(self.results_file)
        self.stdout_file = self.resolve_path(self.stdout_file)
        self.stderr_file = self.resolve_path(self.stderr_file)

    def resolve_path(self, path: Union[str, Path]) -> Path:
        """Resolve `path` against base_dir unless it is absolute."""
        path = Path(path).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        return path


def load_config(
    file_path: Union[str, Path],
    base_dir: Optional[Union[str, Path]] = None,
) -> OrchestratorConfig:
    """Load an OrchestratorConfig from a YAML file.

    Args:
        file_path: Path to the YAML file.
        base_dir: Project root. Defaults to the config file's directory.

    Raises:
        ConfigError: If the file is missing or malformed.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise ConfigError(f"Config file not found: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e

    return config_from_data(
        data or {},
        base_dir=base_dir or file_path.resolve().parent,
        source=str(file_path),
    )


def config_from_data(
    data: dict,
    base_dir: Union[str, Path],
    source: str = "<inline>",
) -> OrchestratorConfig:
    """Build an OrchestratorConfig from an already loaded mapping."""
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(data).__name__}")

    project = _section(data, "project", source)
    output = _section(data, "output", source)
    runner = _section(data, "runner", source)

    kwargs: dict[str, Any] = {"base_dir": Path(base_dir)}

    if "test_roots" in project:
        kwargs["test_roots"] = _path_list(project["test_roots"], "project.test_roots", source)
    if "paths" in project:
        kwargs["project_paths"] = _path_list(project["paths"], "project.paths", source)
    if project.get("venv"):
        kwargs["venv_path"] = Path(project["venv"])

    for key in ("results_file", "stdout_file", "stderr_file"):
        if output.get(key):
            kwargs[key] = Path(output[key])

    if runner.get("version") is not None:
        kwargs["runner_version"] = str(runner["version"])
    if runner.get("timeout_ms") is not None:
        try:
            kwargs["timeout_ms"] = int(runner["timeout_ms"])
        except (TypeError, ValueError):
            raise ConfigError(f"'runner.timeout_ms' must be an integer in {source}")

    kwargs["repository"] = repository_from_data(_section(data, "repository", source), source)
    return OrchestratorConfig(**kwargs)


def repository_from_data(data: dict, source: str = "<inline>") -> RepositorySettings:
    """Build RepositorySettings from the 'repository' mapping."""
    return RepositorySettings(
        local_cache=Path(data.get("local_cache") or DEFAULT_LOCAL_CACHE).expanduser(),
        offline=bool(data.get("offline", False)),
        force_update=bool(data.get("force_update", False)),
        servers=tuple(
            _build(RepositoryServer, item, f"repository.servers[{i}]", source, ["id", "url"])
            for i, item in enumerate(_list(data, "servers", source))
        ),
        mirrors=tuple(
            _build(RepositoryMirror, item, f"repository.mirrors[{i}]", source, ["id", "url"])
            for i, item in enumerate(_list(data, "mirrors", source))
        ),
        proxies=tuple(
            _build(RepositoryProxy, item, f"repository.proxies[{i}]", source, ["host", "port"])
            for i, item in enumerate(_list(data, "proxies", source))
        ),
    )


def _section(data: dict, name: str, source: str) -> dict:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping in {source}")
    return value


def _list(data: dict, name: str, source: str) -> list:
    value = data.get(name) or []
    if not isinstance(value, list):
        raise ConfigError(f"'repository.{name}' must be a list in {source}")
    return value


def _path_list(value: Any, path: str, source: str) -> list[Path]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError(f"'{path}' must be a list in {source}")
    return [Path(v) for v in value]


def _build(cls, item: Any, path: str, source: str, required: list[str]):
    if not isinstance(item, dict):
        raise ConfigError(f"'{path}' must be a mapping in {source}")
    _require_fields(item, required, path, source)
    known = {f.name for f in fields(cls)}
    kwargs = {k: v for k, v in item.items() if k in known}
    if "port" in kwargs:
        try:
            kwargs["port"] = int(kwargs["port"])
        except (TypeError, ValueError):
            raise ConfigError(f"'{path}.port' must be an integer in {source}")
    return cls(**kwargs)


def _require_fields(data: dict, required: list[str], section: str, source: str) -> None:
    """Check that required fields are present."""
    for f in required:
        if f not in data or data[f] is None:
            raise ConfigError(f"Missing required field '{section}.{f}' in {source}")
