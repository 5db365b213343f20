"""Runner module - Test process orchestration."""

from .executor import TestExecutor, create_executor
from .library_path import build_library_path
from .orchestrator import (
    LAUNCH_FAILURE_EXIT_CODE,
    DrainTask,
    ExecutionResult,
    ProcessOrchestrator,
)
from .output_writer import FileSink, NullSink, OutputWriter
from .process_spec import ProcessSpec, ProcessSpecBuilder, select_test_output_root

__all__ = [
    "TestExecutor",
    "create_executor",
    "build_library_path",
    "LAUNCH_FAILURE_EXIT_CODE",
    "DrainTask",
    "ExecutionResult",
    "ProcessOrchestrator",
    "FileSink",
    "NullSink",
    "OutputWriter",
    "ProcessSpec",
    "ProcessSpecBuilder",
    "select_test_output_root",
]
