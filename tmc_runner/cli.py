"""CLI entry point for the TMC test runner.

    tmc-test [OPTIONS] [TEST_IDS]...
    python -m tmc_runner.cli --tests-file tests.txt

Prints a flow-style JSON document on stdout and exits with the runner's exit
code, or with a configuration error code when the run could not be set up.
"""

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from .config import OrchestratorConfig, load_config
from .errors import RunnerError
from .resolver.coordinate import RepositoryServer
from .runner.executor import create_executor
from .runner.orchestrator import LAUNCH_FAILURE_EXIT_CODE


def read_test_ids(path: Path) -> list[str]:
    """Read test identifiers, one per line. Blank lines and # comments are skipped."""
    ids = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                ids.append(line)
    return ids


@click.command()
@click.argument("test_ids", nargs=-1)
@click.option("--config", "config_file", type=click.Path(dir_okay=False, path_type=Path),
              help="YAML run configuration.")
@click.option("--base-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Project root (default: config file directory or cwd).")
@click.option("--tests-file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="File with one test identifier per line.")
@click.option("--runner-version", help="Override the bundled runner version.")
@click.option("--offline/--online", default=None, help="Never contact a package index.")
@click.option("--force-update/--no-force-update", default=None, help="Re-download the runner.")
@click.option("--local-cache", type=click.Path(file_okay=False, path_type=Path),
              help="Runner cache directory.")
@click.option("--index-url", "index_urls", multiple=True,
              help="Package index URL (repeatable; the first is primary).")
@click.option("--results-file", type=click.Path(dir_okay=False, path_type=Path),
              help="File the runner writes results to.")
@click.option("--timeout", "timeout_ms", type=int, help="Test timeout in ms, passed to the runner.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("--pretty", is_flag=True, help="Pretty print output.")
def main(
    test_ids: tuple[str, ...],
    config_file: Optional[Path],
    base_dir: Optional[Path],
    tests_file: Optional[Path],
    runner_version: Optional[str],
    offline: Optional[bool],
    force_update: Optional[bool],
    local_cache: Optional[Path],
    index_urls: tuple[str, ...],
    results_file: Optional[Path],
    timeout_ms: Optional[int],
    verbose: bool,
    pretty: bool,
):
    """Run TEST_IDS with the TMC test runner."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = _build_config(
            config_file, base_dir, runner_version, offline, force_update,
            local_cache, index_urls, results_file, timeout_ms,
        )
        ids = list(test_ids)
        if tests_file:
            ids.extend(read_test_ids(tests_file))

        result = create_executor(config).execute(ids)

    except RunnerError as e:
        output_error(str(e), kind=e.kind.value, pretty=pretty)
        sys.exit(e.exit_code)

    output = {
        "success": result.success,
        "command": "test",
        "data": {
            **result.to_dict(),
            "results_file": str(config.results_file),
            "tests": len(ids),
        },
        "message": _summary(result.exit_code),
    }
    click.echo(json.dumps(output, ensure_ascii=False, indent=2 if pretty else None))
    sys.exit(result.exit_code)


def _build_config(
    config_file, base_dir, runner_version, offline, force_update,
    local_cache, index_urls, results_file, timeout_ms,
) -> OrchestratorConfig:
    if config_file:
        config = load_config(config_file, base_dir=base_dir)
    else:
        config = OrchestratorConfig(base_dir=base_dir or Path.cwd())

    repository = config.repository
    if offline is not None:
        repository = replace(repository, offline=offline)
    if force_update is not None:
        repository = replace(repository, force_update=force_update)
    if local_cache:
        repository = replace(repository, local_cache=local_cache)
    if index_urls:
        servers = tuple(
            RepositoryServer(id=f"cli-{i}", url=url) for i, url in enumerate(index_urls)
        )
        repository = replace(repository, servers=servers)
    config.repository = repository

    if runner_version:
        config.runner_version = runner_version
    if results_file:
        config.results_file = config.resolve_path(results_file)
    if timeout_ms is not None:
        config.timeout_ms = timeout_ms
    return config


def _summary(exit_code: int) -> str:
    if exit_code == 0:
        return "Runner completed"
    if exit_code == LAUNCH_FAILURE_EXIT_CODE:
        return "Runner process could not be started"
    return f"Runner failed with exit code {exit_code}"


def output_error(message: str, pretty: bool = False, **extra):
    """Output error in flow JSON format."""
    output = {
        "success": False,
        "command": "test",
        "data": extra or None,
        "message": message,
    }
    click.echo(json.dumps(output, ensure_ascii=False, indent=2 if pretty else None))


if __name__ == "__main__":
    main()
