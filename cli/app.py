"""Main CLI application: a single catch-all command feeding the resolver."""

import asyncio
from typing import List, Optional

import typer
from loguru import logger

from core.errors import report_error
from core.pipeline import Event

from .argv import parse_argv
from .bootstrap import create_framework

# Initialize the main app
app = typer.Typer(
    name="stratus",
    help="Stratus: plugin-driven deployment of AWS Lambda functions",
    add_completion=False,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


async def execute(argv: List[str], debug: bool = False) -> Optional[Event]:
    """Build the framework and run one command line."""
    framework = await create_framework(debug=debug)
    return await framework.command(parse_argv(argv))


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
    add_help_option=False,
)
def run(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """stratus <context> <action> [params...] [--option value]"""
    try:
        asyncio.run(execute(list(ctx.args), debug=debug))
    except Exception as e:
        logger.debug(f"Command failed: {e!r}")
        raise typer.Exit(report_error(e, verbose=debug))


def main():
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
