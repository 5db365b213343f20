"""Tests for the combined library search path."""

import os

from tmc_runner.runner.library_path import build_library_path


class TestBuildLibraryPath:

    def test_project_entries_come_before_runner_entries(self) -> None:
        sep = os.pathsep
        assert build_library_path(["/a", "/b"], ["/c"]) == "/a" + sep + "/b" + sep + "/c"

    def test_custom_separator(self) -> None:
        assert build_library_path(["/a"], ["/b", "/c"], separator=";") == "/a;/b;/c"

    def test_empty_inputs(self) -> None:
        assert build_library_path([], []) == ""
        assert build_library_path(["/a"], []) == "/a"
        assert build_library_path([], ["/c"]) == "/c"

    def test_accepts_any_iterable(self) -> None:
        result = build_library_path(iter(["/a"]), ("/c",), separator=":")
        assert result == "/a:/c"
