"""Runner library resolution through pip.

Downloads a pinned runner distribution and its transitive dependencies as
wheels into a per-coordinate cache directory. Pure-Python wheels are
importable straight from PYTHONPATH, so the resolved wheel files form the
runner's library search path.
"""

import logging
import re
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Callable, Optional

from ..errors import DependencyResolutionError
from .coordinate import DEFAULT_PACKAGING, DependencyCoordinate, RepositorySettings

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., subprocess.CompletedProcess]


def normalize_name(name: str) -> str:
    """Normalize a distribution name the way wheel filenames do."""
    return re.sub(r"[-_.]+", "_", name).lower()


def runner_coordinate(defaults, version: Optional[str] = None) -> DependencyCoordinate:
    """Build the runner coordinate, using `version` over the bundled default."""
    return DependencyCoordinate(
        group=defaults.group,
        artifact=defaults.artifact,
        version=version or defaults.version,
    )


class DependencyResolver:
    """Resolves a coordinate and its dependencies into an ordered wheel list."""

    def __init__(
        self,
        python_exe: Optional[str] = None,
        run_command: CommandRunner = subprocess.run,
    ):
        """Initialize the resolver.

        Args:
            python_exe: Interpreter whose pip performs downloads.
                Defaults to the running interpreter.
            run_command: subprocess.run-compatible callable.
        """
        self.python_exe = python_exe or sys.executable
        self._run = run_command

    def cache_dir(self, coordinate: DependencyCoordinate, settings: RepositorySettings) -> Path:
        """Cache directory holding the wheels of one coordinate."""
        return (
            Path(settings.local_cache).expanduser().resolve()
            / coordinate.group
            / coordinate.artifact
            / coordinate.version
        )

    def resolve(
        self,
        coordinate: DependencyCoordinate,
        settings: RepositorySettings,
    ) -> tuple[str, ...]:
        """Resolve `coordinate` transitively.

        Returns:
            Absolute wheel paths: the artifact's own wheel first, then its
            dependencies sorted by file name.

        Raises:
            DependencyResolutionError: If the artifact or any dependency
                cannot be resolved.
        """
        if coordinate.packaging != DEFAULT_PACKAGING:
            raise DependencyResolutionError(
                f"Failed to resolve {coordinate}: unsupported packaging "
                f"'{coordinate.packaging}'"
            )

        target = self.cache_dir(coordinate, settings)

        cached = bool(_wheels_in(target))

        # offline wins over force_update: a cached copy is always served
        if cached and (settings.offline or not settings.force_update):
            logger.debug("Using cached %s from %s", coordinate, target)
            return self._ordered(coordinate, target)

        if settings.offline:
            raise DependencyResolutionError(
                f"Failed to resolve {coordinate}: not in local cache {target} "
                "and offline mode is enabled"
            )

        logger.info("Resolving %s%s", coordinate, " (force update)" if cached else "")
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".staging-", dir=target.parent))
        try:
            self._download(coordinate, settings, staging)
            self._ordered(coordinate, staging)
            # the previous cache entry is only dropped once its replacement is complete
            if target.exists():
                shutil.rmtree(target)
            staging.rename(target)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

        return self._ordered(coordinate, target)

    def build_command(
        self,
        coordinate: DependencyCoordinate,
        settings: RepositorySettings,
        dest: Path,
    ) -> list[str]:
        """Build the pip download command line."""
        cmd = [
            self.python_exe, "-m", "pip", "download",
            "--dest", str(dest),
            "--only-binary=:all:",
            "--disable-pip-version-check",
            "--no-input",
            "--progress-bar", "off",
        ]

        index_urls = settings.index_urls()
        if index_urls:
            cmd += ["--index-url", index_urls[0]]
            for url in index_urls[1:]:
                cmd += ["--extra-index-url", url]

        proxy = settings.active_proxy
        if proxy:
            cmd += ["--proxy", proxy.url]

        if settings.force_update:
            cmd.append("--no-cache-dir")

        cmd.append(coordinate.requirement)
        return cmd

    def _download(
        self,
        coordinate: DependencyCoordinate,
        settings: RepositorySettings,
        dest: Path,
    ) -> None:
        cmd = self.build_command(coordinate, settings, dest)
        try:
            self._run(cmd, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            cause = _first_cause(e.stderr or e.stdout or "")
            message = f"Failed to resolve {coordinate}"
            if cause:
                message += f": {cause}"
            raise DependencyResolutionError(message) from e
        except OSError as e:
            raise DependencyResolutionError(
                f"Failed to resolve {coordinate}: {e}"
            ) from e

    def _ordered(self, coordinate: DependencyCoordinate, directory: Path) -> tuple[str, ...]:
        wheels = _wheels_in(directory)
        prefix = f"{normalize_name(coordinate.artifact)}-{coordinate.version}-"
        primary = [w for w in wheels if w.name.lower().startswith(prefix.lower())]

        if not primary:
            raise DependencyResolutionError(
                f"Failed to resolve {coordinate}: no wheel for the artifact in {directory}"
            )

        rest = [w for w in wheels if w != primary[0]]
        return tuple(str(w.resolve()) for w in [primary[0]] + rest)


def _wheels_in(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.glob("*.whl") if p.is_file())


def _first_cause(output: str) -> Optional[str]:
    """Extract the first meaningful error line from pip output."""
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    for line in lines:
        if line.startswith("ERROR:"):
            return line[len("ERROR:"):].strip()
    return lines[-1] if lines else None
