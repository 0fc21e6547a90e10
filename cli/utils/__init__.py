"""CLI utilities and helpers."""

from .console import create_table, get_console, print_info, print_success, set_console

__all__ = [
    "create_table",
    "get_console",
    "print_info",
    "print_success",
    "set_console",
]
