"""Error taxonomy for the test runner.

Configuration-time errors (layout, classpath, resolution, config file) abort a
run before any child process exists. Launch and stream errors are recovered
inside the orchestrator and only ever logged.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Tag carried by every runner error."""
    UNSUPPORTED_LAYOUT = "unsupported_layout"
    DEPENDENCY_RESOLUTION = "dependency_resolution"
    CLASSPATH_UNAVAILABLE = "classpath_unavailable"
    PROCESS_LAUNCH = "process_launch"
    STREAM_WRITE = "stream_write"
    CONFIG = "config"


# CLI exit status per configuration-time error kind.
EXIT_CODES = {
    ErrorKind.UNSUPPORTED_LAYOUT: 2,
    ErrorKind.CLASSPATH_UNAVAILABLE: 3,
    ErrorKind.DEPENDENCY_RESOLUTION: 4,
    ErrorKind.CONFIG: 5,
}


class RunnerError(Exception):
    """Base class for all runner errors."""
    kind: ErrorKind

    @property
    def exit_code(self) -> int:
        return EXIT_CODES.get(self.kind, 1)


class UnsupportedLayoutError(RunnerError):
    """Raised when the project does not have exactly one test output root."""
    kind = ErrorKind.UNSUPPORTED_LAYOUT


class DependencyResolutionError(RunnerError):
    """Raised when the runner artifact or one of its dependencies can't be resolved."""
    kind = ErrorKind.DEPENDENCY_RESOLUTION


class ClasspathUnavailableError(RunnerError):
    """Raised when the project's own library path cannot be computed."""
    kind = ErrorKind.CLASSPATH_UNAVAILABLE


class ProcessLaunchError(RunnerError):
    """The child process could not be started."""
    kind = ErrorKind.PROCESS_LAUNCH


class StreamWriteError(RunnerError):
    """An output sink could not be opened or written."""
    kind = ErrorKind.STREAM_WRITE


class ConfigError(RunnerError):
    """Raised when a configuration file is missing or malformed."""
    kind = ErrorKind.CONFIG
