"""Combined library search path."""

import os
from typing import Iterable


def build_library_path(
    project_paths: Iterable[str],
    runner_paths: Iterable[str],
    separator: str = os.pathsep,
) -> str:
    """Join project entries followed by runner entries into one search path.

    Project entries come first so the project's own modules shadow any
    same-named module shipped with the runner.
    """
    return separator.join([*project_paths, *runner_paths])
