"""Project library path computation.

The project's own search path is its configured source/test directories
followed by the site-packages directories of the project's virtual
environment, when one is configured.
"""

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from ..errors import ClasspathUnavailableError

logger = logging.getLogger(__name__)

_SITE_PATHS_SNIPPET = (
    "import json, sysconfig; "
    "print(json.dumps([sysconfig.get_path('purelib'), sysconfig.get_path('platlib')]))"
)


class ProjectEnvironment:
    """Computes the library path of the project under test."""

    def __init__(
        self,
        base_dir: Path,
        project_paths: Sequence[Path] = (),
        venv_path: Optional[Path] = None,
        query_timeout: float = 30.0,
    ):
        """Initialize ProjectEnvironment.

        Args:
            base_dir: Project root directory.
            project_paths: Directories placed first on the path, relative
                paths being resolved against base_dir.
            venv_path: Project virtualenv whose site-packages are appended.
            query_timeout: Seconds allowed for querying the venv interpreter.
        """
        self.base_dir = Path(base_dir).resolve()
        self.project_paths = [self._absolute(p) for p in project_paths]
        self.venv_path = self._absolute(venv_path) if venv_path else None
        self.query_timeout = query_timeout

    @property
    def python_exe(self) -> Optional[Path]:
        """Get the venv Python executable path."""
        if self.venv_path is None:
            return None
        if os.name == "nt":  # Windows
            return self.venv_path / "Scripts" / "python.exe"
        else:  # Unix/macOS
            return self.venv_path / "bin" / "python"

    def library_path(self) -> list[str]:
        """Return the project's ordered library path entries.

        Raises:
            ClasspathUnavailableError: If a configured venv is missing or
                its site-packages cannot be queried.
        """
        entries = []
        for path in self.project_paths:
            if not path.exists():
                logger.warning("Project path does not exist: %s", path)
            entries.append(str(path))

        if self.venv_path is not None:
            for site_dir in self._site_packages():
                if site_dir not in entries:
                    entries.append(site_dir)

        return entries

    def _site_packages(self) -> list[str]:
        python_exe = self.python_exe
        if not python_exe.exists():
            raise ClasspathUnavailableError(
                f"Failed to get project classpath: no interpreter at {python_exe}"
            )

        try:
            result = subprocess.run(
                [str(python_exe), "-c", _SITE_PATHS_SNIPPET],
                check=True,
                capture_output=True,
                text=True,
                timeout=self.query_timeout,
            )
            paths = json.loads(result.stdout)
        except subprocess.CalledProcessError as e:
            raise ClasspathUnavailableError(
                f"Failed to get project classpath: {(e.stderr or e.stdout).strip()}"
            ) from e
        except (subprocess.TimeoutExpired, OSError, ValueError) as e:
            raise ClasspathUnavailableError(
                f"Failed to get project classpath: {e}"
            ) from e

        # purelib and platlib are usually the same directory
        unique = []
        for path in paths:
            if path and path not in unique:
                unique.append(path)
        return unique

    def _absolute(self, path) -> Path:
        path = Path(path).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        return path
