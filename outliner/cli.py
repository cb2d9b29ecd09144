"""Command-line interface for outliner."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import click

from outliner import __version__
from outliner.config import Config, load_config
from outliner.exceptions import OutlinerError
from outliner.outline_io import load_outline
from outliner.utils.output import (
    error,
    set_color,
    set_pager,
    set_verbosity,
    warning,
)

if TYPE_CHECKING:
    from outliner.model import Outline


class Context:
    """Shared context for all commands."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False
        self.pager: bool | None = None  # None = auto

    def load_outline(self) -> Outline:
        """Load the configured outline document.

        Raises:
            OutlineError: If the document is missing or malformed.
        """
        config = self.config or Config()
        return load_outline(config.outline)


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    help="Path to config file (default: ~/.config/outliner/config.toml)",
)
@click.option(
    "--outline",
    "-o",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    help="Path to the outline JSON document (overrides config)",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug output and logging (implies --verbose)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress non-error output",
)
@click.option(
    "--pager/--no-pager",
    default=None,
    help="Force pager on/off (default: auto-detect)",
)
@click.version_option(version=__version__, prog_name="outliner")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    outline: Path | None,
    no_color: bool,
    verbose: bool,
    debug: bool,
    quiet: bool,
    pager: bool | None,
) -> None:
    """outliner: Search hierarchical note outlines with a filter query language.

    Queries combine free text with filters such as d:>1 (depth),
    @status=done (attributes), m:-7d (modified in the last week) and
    a:@type=project (some ancestor matches).

    Configuration is loaded from ~/.config/outliner/config.toml by default.
    Use --config to specify an alternative configuration file.

    Examples:

        # Open tasks in any project
        outliner search "@type=task -@status=done a:@type=project"

        # Explain why a node does (not) match
        outliner explain --node item_1 "d:>0 meeting"
    """
    ctx.ensure_object(Context)
    app_ctx = ctx.obj
    app_ctx.verbose = verbose or debug
    app_ctx.debug = debug
    app_ctx.quiet = quiet
    app_ctx.pager = pager

    set_verbosity(verbose=verbose, debug=debug)
    set_pager(pager)

    # Configure color output: disabled by --no-color, NO_COLOR env, or config
    disable_color = no_color or os.environ.get("NO_COLOR") is not None

    if disable_color:
        set_color(False)

    try:
        loaded_config, warnings = load_config(config)
    except OutlinerError as e:
        error(str(e))
        ctx.exit(1)
        return

    app_ctx.config = loaded_config

    if outline is not None:
        loaded_config.outline = outline.expanduser().resolve()
        warnings = [w for w in warnings if not w.startswith("Outline not found")]

    if not disable_color and not loaded_config.colored_output:
        set_color(False)

    # Show warnings unless quiet
    if not quiet:
        for warn in warnings:
            warning(warn)


@cli.command("help")
@click.argument("command", required=False, nargs=-1)
@click.pass_context
def help_cmd(ctx: click.Context, command: tuple[str, ...]) -> None:
    """Show help for a command."""
    group = cli
    for name in command:
        cmd = group.get_command(ctx, name)
        if cmd is None:
            error(f"Unknown command: {name}")
            ctx.exit(1)
            return
        if isinstance(cmd, click.Group):
            group = cmd
        else:
            click.echo(cmd.get_help(ctx))
            return
    click.echo(group.get_help(ctx))


def register_commands() -> None:
    """Register all commands from the commands package."""
    from outliner.commands import discover_commands

    for command in discover_commands():
        cli.add_command(command)


# Register commands on import
register_commands()
