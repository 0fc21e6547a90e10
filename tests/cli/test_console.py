"""Tests for the shared console helpers."""

from cli.utils import create_table, get_console, print_info, print_success, set_console
from tests.cli.conftest import output


class TestStatusPanels:
    def test_success_panel(self, console):
        print_success("Deployed 2 function unit(s)")

        text = output(console)
        assert "Success" in text
        assert "Deployed 2 function unit(s)" in text

    def test_info_panel_title(self, console):
        print_info("Nothing to do", title="Stage")

        text = output(console)
        assert "Stage" in text
        assert "Nothing to do" in text


class TestTable:
    def test_columns(self, console):
        table = create_table("Deployed functions", ["Function", "Region"])
        table.add_row("hello", "us-east-1")
        get_console().print(table)

        assert [column.header for column in table.columns] == ["Function", "Region"]
        assert "hello" in output(console)


class TestGlobalConsole:
    def test_quiet_environment(self, monkeypatch):
        monkeypatch.setenv("STRATUS_QUIET", "1")
        set_console(None)
        try:
            assert get_console().quiet is True
        finally:
            set_console(None)
