"""Tests for process spec building."""

import logging
import os
import sys
from pathlib import Path

import pytest

from tmc_runner.errors import UnsupportedLayoutError
from tmc_runner.runner.process_spec import (
    SEARCH_PATH_VARIABLE,
    ProcessSpecBuilder,
    runtime_binary,
    select_test_output_root,
)


@pytest.fixture
def builder(tmp_path: Path) -> ProcessSpecBuilder:
    return ProcessSpecBuilder(
        working_dir=tmp_path,
        executable="/opt/python/bin/python3",
        environ=lambda: {"HOME": "/home/student", "PYTHONPATH": "/stale", "PYTHONOPTIMIZE": "2"},
    )


def _build(builder, test_ids=("test_a.TestA.test_one", "test_b.TestB.test_two"), **kwargs):
    return builder.build(
        search_path="/proj/src" + os.pathsep + "/repo/a-1.0.whl",
        test_output_root=Path("/proj/tests"),
        result_file=Path("/proj/build/test_output.txt"),
        entry_point="a_runner",
        test_ids=list(test_ids),
        **kwargs,
    )


class TestSelectTestOutputRoot:

    def test_single_root(self) -> None:
        assert select_test_output_root(["/proj/tests"]) == Path("/proj/tests")

    def test_multiple_roots_rejected(self) -> None:
        with pytest.raises(UnsupportedLayoutError, match="Multiple test roots"):
            select_test_output_root(["/proj/tests", "/proj/it"])

    def test_no_root_rejected(self) -> None:
        with pytest.raises(UnsupportedLayoutError):
            select_test_output_root([])


class TestProcessSpecBuilder:

    def test_argument_order(self, builder: ProcessSpecBuilder) -> None:
        spec = _build(builder)
        assert spec.arguments == (
            "-u",
            "-X", "dev",
            "-X", f"tmc.test_output_root={Path('/proj/tests')}",
            "-X", f"tmc.results_file={Path('/proj/build/test_output.txt')}",
            "-m", "a_runner",
            "test_a.TestA.test_one",
            "test_b.TestB.test_two",
        )

    def test_timeout_passed_before_entry_point(self, builder: ProcessSpecBuilder) -> None:
        spec = _build(builder, timeout_ms=60000)
        args = list(spec.arguments)
        flag = args.index("tmc.test_timeout=60000")
        assert args[flag - 1] == "-X"
        assert flag < args.index("-m")
        assert args[-3:] == ["a_runner", "test_a.TestA.test_one", "test_b.TestB.test_two"]

    def test_no_timeout_flag_without_timeout(self, builder: ProcessSpecBuilder) -> None:
        spec = _build(builder)
        assert not any(a.startswith("tmc.test_timeout=") for a in spec.arguments)

    def test_empty_test_ids_keeps_flags_and_entry_point(self, builder: ProcessSpecBuilder) -> None:
        spec = _build(builder, test_ids=())
        assert spec.arguments[-2:] == ("-m", "a_runner")
        assert spec.arguments[0] == "-u"

    def test_environment_inherits_and_overrides_search_path(self, builder: ProcessSpecBuilder) -> None:
        spec = _build(builder)
        assert spec.environment["HOME"] == "/home/student"
        assert spec.environment[SEARCH_PATH_VARIABLE] == "/proj/src" + os.pathsep + "/repo/a-1.0.whl"

    def test_environment_only_search_path_changes(self, builder: ProcessSpecBuilder) -> None:
        spec = _build(builder)
        assert dict(spec.environment) == {
            "HOME": "/home/student",
            "PYTHONOPTIMIZE": "2",
            SEARCH_PATH_VARIABLE: "/proj/src" + os.pathsep + "/repo/a-1.0.whl",
        }

    def test_environment_is_read_only(self, builder: ProcessSpecBuilder) -> None:
        spec = _build(builder)
        with pytest.raises(TypeError):
            spec.environment["HOME"] = "/tmp"

    def test_environment_copy_failure_is_not_fatal(self, tmp_path: Path, caplog) -> None:
        def broken_environ():
            raise RuntimeError("environment unavailable")

        builder = ProcessSpecBuilder(
            working_dir=tmp_path, executable="/opt/python/bin/python3", environ=broken_environ,
        )
        with caplog.at_level(logging.WARNING):
            spec = _build(builder)

        assert dict(spec.environment) == {SEARCH_PATH_VARIABLE: "/proj/src" + os.pathsep + "/repo/a-1.0.whl"}
        assert "Could not copy parent environment" in caplog.text

    def test_explicit_executable(self, builder: ProcessSpecBuilder) -> None:
        spec = _build(builder)
        assert spec.executable == "/opt/python/bin/python3"
        assert spec.command[0] == spec.executable
        assert spec.command[1:] == list(spec.arguments)

    def test_default_executable_is_current_interpreter(self, tmp_path: Path) -> None:
        spec = _build(ProcessSpecBuilder(working_dir=tmp_path))
        assert os.path.samefile(spec.executable, sys.executable)

    def test_runtime_binary(self) -> None:
        assert runtime_binary() == Path(sys.executable)

    def test_working_dir(self, builder: ProcessSpecBuilder, tmp_path: Path) -> None:
        assert _build(builder).working_dir == str(tmp_path)
