"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- format_response, print_table and print_diff in each format
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from comppatch.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)
from comppatch import output as output_module


DIFF = "--- a/_x\n+++ b/_x\n@@ -1 +1 @@\n-:IMG:\n+:IMG:_files\n"


@pytest.fixture(autouse=True)
def _reset_global_output():
    """Ensure the global output instance is reset between tests."""
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("comppatch.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("comppatch.output._is_tty", lambda: True)


def _plain(**kwargs) -> OutputManager:
    return OutputManager(format=OutputFormat.PLAIN, no_color=True, **kwargs)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, non_tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        _plain().print_data('_files -g "*.png"')
        captured = capfd.readouterr()
        assert captured.out == '_files -g "*.png"\n'
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        getattr(_plain(), method)("patched 3 lines")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "patched 3 lines" in captured.err

    def test_error_prefix(self, capfd, non_tty):
        _plain().error("Completion file not found: _x")
        assert capfd.readouterr().err == "Error: Completion file not found: _x\n"

    def test_brackets_are_not_markup(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        OutputManager(format=OutputFormat.PLAIN).info("glob *.[jp]ng")
        assert "*.[jp]ng" in capfd.readouterr().err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = _plain(quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warning_and_error(self, capfd, non_tty):
        mgr = _plain(quiet=True)
        mgr.warning("no markers")
        mgr.error("bad glob")
        err = capfd.readouterr().err
        assert "Warning: no markers" in err
        assert "Error: bad glob" in err

    def test_debug_only_when_verbose(self, capfd, non_tty):
        _plain().debug("hidden")
        assert capfd.readouterr().err == ""
        _plain(verbose=True).debug("glob set")
        assert capfd.readouterr().err == "[debug] glob set\n"


# ------------------------------------------------------------------ #
# Data renderers
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"lines_changed": 3})
        assert json.loads(capfd.readouterr().out) == {"lines_changed": 3}

    def test_plain_dict(self, capfd, non_tty):
        _plain().format_response({"globs": ["*.png"], "written": True})
        assert capfd.readouterr().out == 'globs\t["*.png"]\nwritten\tTrue\n'

    def test_plain_list(self, capfd, non_tty):
        _plain().format_response(["*.png", "*.jpg"])
        assert capfd.readouterr().out == "*.png\n*.jpg\n"


class TestPrintTable:
    def test_plain(self, capfd, non_tty):
        _plain().print_table(["#", "glob"], [["1", "*.png"], ["2", "*.jpg"]])
        assert capfd.readouterr().out == "#\tglob\n1\t*.png\n2\t*.jpg\n"

    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(["#", "glob"], [["1", "*.png"]])
        assert json.loads(capfd.readouterr().out) == [{"#": "1", "glob": "*.png"}]


class TestPrintDiff:
    def test_plain_writes_verbatim(self, capfd, non_tty):
        _plain().print_diff(DIFF)
        assert capfd.readouterr().out == DIFF

    def test_adds_trailing_newline(self, capfd, non_tty):
        _plain().print_diff(DIFF.rstrip("\n"))
        assert capfd.readouterr().out == DIFF

    def test_empty_diff_prints_nothing(self, capfd, non_tty):
        _plain().print_diff("")
        assert capfd.readouterr().out == ""


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        assert isinstance(get_output(), OutputManager)

    def test_set_output_installs_instance(self):
        mgr = _plain()
        set_output(mgr)
        assert get_output() is mgr

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(_plain())
        output_module.print_data("data")
        output_module.warning("careful")
        captured = capfd.readouterr()
        assert captured.out == "data\n"
        assert captured.err == "Warning: careful\n"
