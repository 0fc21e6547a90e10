"""Stratus CLI module.

The CLI is a thin layer: it lexes argv, resolves the command against the
framework's command table and runs the bound action.
"""

from ._version import __version__
