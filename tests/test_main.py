# tests/test_main.py
"""
End-to-end tests for the command-line front end.
"""

import json
import logging

import pytest

from erris import __version__
from erris.main import EXIT_ERROR, EXIT_OK, main


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logger = logging.getLogger("erris")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


class TestUsage:

    def test_no_arguments(self, capsys):
        assert main([]) == EXIT_ERROR
        out = capsys.readouterr().out
        assert out == "Usage: erris ./...\n"
        assert len(out.split("\n")) == 2

    def test_flags_only(self, capsys):
        assert main(["-ignoretests"]) == EXIT_ERROR
        assert capsys.readouterr().out == "Usage: erris ./...\n"

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestReporting:

    def test_issues_with_tests(self, workspace, capsys):
        assert main([workspace["app"]]) == EXIT_ERROR
        lines = capsys.readouterr().out.split("\n")
        assert lines == [
            "app.go:9:9\tuse errors.Is to compare an error",
            "app_test.go:13:9\tuse errors.As to assert an error",
            "",
        ]

    @pytest.mark.parametrize("flag", ["-ignoretests", "--ignoretests", "--ignore-tests"])
    def test_ignore_tests(self, workspace, capsys, flag):
        assert main([flag, workspace["app"]]) == EXIT_ERROR
        lines = capsys.readouterr().out.split("\n")
        assert lines == ["app.go:9:9\tuse errors.Is to compare an error", ""]

    def test_json(self, workspace, capsys):
        assert main(["--format", "json", workspace["app"]]) == EXIT_ERROR
        records = [json.loads(ln) for ln in capsys.readouterr().out.splitlines()]
        assert records[0] == {
            "file": "app.go", "line": 9, "column": 9,
            "message": "use errors.Is to compare an error",
        }
        assert len(records) == 2

    def test_clean(self, workspace, capsys):
        assert main([workspace["clean"]]) == EXIT_OK
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_zero_units(self, tmp_path, capsys):
        assert main([str(tmp_path) + "/..."]) == EXIT_OK
        assert capsys.readouterr().out == ""


class TestLoadFailures:

    def test_unit_errors(self, workspace, capsys):
        assert main([workspace["root"] + "/..."]) == EXIT_ERROR
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "errors while loading package example.com/broken" in captured.err

    def test_missing_path(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing")]) == EXIT_ERROR
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "cannot find package" in captured.err


class TestLogging:

    def test_verbose_logs_summary(self, workspace, capsys):
        main(["-v", workspace["clean"]])
        assert "checked 1 unit(s)" in capsys.readouterr().err

    def test_repeated_runs_do_not_stack_handlers(self, workspace):
        main([workspace["clean"]])
        main([workspace["clean"]])
        assert len(logging.getLogger("erris").handlers) == 1
