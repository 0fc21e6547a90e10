"""Fixtures for CLI tests."""

import io

import pytest
from rich.console import Console

from cli.utils.console import set_console


@pytest.fixture
def console():
    """A recording console that also receives the actions' status output."""
    console = Console(file=io.StringIO(), width=200, color_system=None)
    set_console(console)
    yield console
    set_console(None)


def output(console: Console) -> str:
    return console.file.getvalue()
