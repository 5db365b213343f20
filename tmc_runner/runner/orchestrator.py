"""Runner process orchestration.

Launches the runner, drains stdout and stderr on two dedicated threads and
waits for the process to exit. Both streams must be drained concurrently: a
child blocked on a full stderr pipe would otherwise never close stdout.
"""

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Optional

from ..errors import ProcessLaunchError
from .output_writer import OutputWriter
from .process_spec import ProcessSpec

logger = logging.getLogger(__name__)

LAUNCH_FAILURE_EXIT_CODE = 127


@dataclass
class ExecutionResult:
    """Outcome of one runner process."""
    exit_code: int
    stdout_path: str
    stderr_path: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def launched(self) -> bool:
        return self.exit_code != LAUNCH_FAILURE_EXIT_CODE

    def to_dict(self) -> dict[str, Any]:
        return {
            "exit_code": self.exit_code,
            "stdout_file": self.stdout_path,
            "stderr_file": self.stderr_path,
            "success": self.success,
        }


class DrainTask:
    """Copies every line of a stream into a writer on its own thread."""

    def __init__(self, name: str, stream: IO[str], writer: OutputWriter):
        self.name = name
        self.stream = stream
        self.writer = writer
        self.lines = 0
        self.error: Optional[BaseException] = None
        self._thread = threading.Thread(
            target=self._drain,
            name=f"tmc-drain-{name}",
            daemon=True,
        )

    def start(self) -> None:
        """Start draining; returns once the thread is running."""
        self._thread.start()

    def join(self) -> None:
        self._thread.join()
        if self.error is not None:
            logger.warning("Draining %s stopped early: %s", self.name, self.error)

    def _drain(self) -> None:
        try:
            for line in self.stream:
                self.writer.consume_line(line.rstrip("\n"))
                self.lines += 1
        except Exception as e:
            self.error = e
        finally:
            self.stream.close()


class ProcessOrchestrator:
    """Runs one ProcessSpec and captures its output streams."""

    def __init__(self, stdout_path: Path, stderr_path: Path):
        self.stdout_path = Path(stdout_path)
        self.stderr_path = Path(stderr_path)

    def run(self, spec: ProcessSpec) -> ExecutionResult:
        """Run the process described by `spec` to completion.

        Returns:
            ExecutionResult with the child's exit code, or 127 when the
            process could not be started.
        """
        stdout_writer = OutputWriter(self.stdout_path, name="stdout")
        stderr_writer = OutputWriter(self.stderr_path, name="stderr")

        try:
            exit_code = self._run(spec, stdout_writer, stderr_writer)
        finally:
            stdout_writer.close()
            stderr_writer.close()

        return ExecutionResult(
            exit_code=exit_code,
            stdout_path=str(self.stdout_path),
            stderr_path=str(self.stderr_path),
        )

    def _run(
        self,
        spec: ProcessSpec,
        stdout_writer: OutputWriter,
        stderr_writer: OutputWriter,
    ) -> int:
        logger.debug("Launching %s in %s", spec.command, spec.working_dir)
        try:
            process = subprocess.Popen(
                spec.command,
                cwd=spec.working_dir,
                env=dict(spec.environment),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            error = ProcessLaunchError(f"Failed to start {spec.executable}: {e}")
            logger.error("%s", error)
            return LAUNCH_FAILURE_EXIT_CODE

        drains = [
            DrainTask("stdout", process.stdout, stdout_writer),
            DrainTask("stderr", process.stderr, stderr_writer),
        ]
        for task in drains:
            task.start()

        try:
            exit_code = process.wait()
        except BaseException:
            process.kill()
            process.wait()
            raise
        finally:
            for task in drains:
                task.join()

        logger.debug(
            "Runner exited with %d (%d stdout lines, %d stderr lines)",
            exit_code, drains[0].lines, drains[1].lines,
        )
        return exit_code
