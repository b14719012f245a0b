"""Tests for appship.output.console module."""

from __future__ import annotations

import pytest

from appship.output.console import ConsoleProtocol, MockConsole, RichConsole, Style


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DIM) == "dim"


class TestMockConsole:
    def test_prefixes(self) -> None:
        console = MockConsole()
        console.success("done")
        console.error("bad")
        console.warning("careful")
        console.info("fyi")

        assert console.messages == ["OK done", "error: bad", "warning: careful", "info: fyi"]
        assert console.has_error()
        assert console.has_warning()

    def test_output_lines_are_dim(self) -> None:
        console = MockConsole()
        console.output("Running Gradle task 'bundleRelease'...")

        assert console.count(Style.DIM) == 1

    def test_find(self) -> None:
        console = MockConsole()
        console.print("Found build artifact: app-release.aab")
        console.header("Upload")

        assert len(console.find("app-release")) == 1
        assert console.text == "Found build artifact: app-release.aab\nUpload"


class TestProtocolConformance:
    def test_mock_console(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.newline()

    def test_rich_console_prints_markup_free_output(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        console: ConsoleProtocol = RichConsole()
        console.output("[not markup] line")
        console.success("ok")

        captured = capsys.readouterr()
        assert "[not markup] line" in captured.out
        assert "OK ok" in captured.out

    def test_rich_console_sends_problems_to_stderr(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        console = RichConsole()
        console.error("upload [failed]")
        console.warning("no topic")
        console.print("https://appho.st/d/xyz")

        captured = capsys.readouterr()
        assert "error: upload [failed]" in captured.err
        assert "warning: no topic" in captured.err
        assert "https://appho.st/d/xyz" in captured.out
        assert "error:" not in captured.out

    def test_rich_console_prints_brackets_literally(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        console = RichConsole()
        console.print("App directory: /home/u/apps [old]/demo")
        console.print("https://appho.st/d/xyz?[/x]", Style.INFO)
        console.header("Build [/release]")

        captured = capsys.readouterr()
        assert "App directory: /home/u/apps [old]/demo" in captured.out
        assert "https://appho.st/d/xyz?[/x]" in captured.out
        assert "Build [/release]" in captured.out
