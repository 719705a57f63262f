"""
Main CLI class and entry point for Jarvis.

Package Structure
=================

The CLI package is organized as follows::

    jarvis/cli/
    ├── __init__.py              # Public API exports
    ├── main.py                  # This file: CLI class and the cli entry point
    ├── display.py               # Rich display classes for formatted output
    ├── utils.py                 # Helper functions (mask_secret, read_content)
    └── commands/
        ├── __init__.py         # Command mixin exports
        ├── panel.py            # PanelCommandsMixin (panel http / site / crontab / database)
        ├── database.py         # DatabaseCommandsMixin (database create / show)
        ├── system.py           # SystemCommandsMixin (system info / resource / process / ...)
        └── xcode.py            # XcodeCommandsMixin (xcode version / bump / build / ...)

Architecture: Mixin Pattern
============================

Every mixin contributes the command groups and commands of one topic as methods decorated with
``@click.group()`` or ``@click.command()`` together with ``@click.pass_obj``. The ``cli`` entry
point stores the CLI instance itself as the context object, so that ``self`` inside of every
command is the CLI object. The ``CLI.__init__`` method registers all the commands explicitly.

The CLI object also carries the state shared by all commands:

- ``cons``: The rich Console used for all the colored output
- ``logger``: The logger created from the --debug and --log-file options
- ``transport``: An optional httpx transport for the panel client. This is None for the real
  command line and replaced by a mock transport in the tests.

Entry Point
===========

The ``cli()`` function at the bottom of this module is the main entry point registered in
pyproject.toml::

    [project.scripts]
    jarvis = "jarvis.cli:cli"
"""

import sys

import httpx
import rich
import rich_click as click
from rich.console import Console

from jarvis.util import NULL_LOGGER, create_logger, get_version
from jarvis.cli.display import RichLogo, RichHelp
from jarvis.cli.commands import (
    PanelCommandsMixin,
    DatabaseCommandsMixin,
    SystemCommandsMixin,
    XcodeCommandsMixin,
)


class CLI(PanelCommandsMixin, DatabaseCommandsMixin, SystemCommandsMixin, XcodeCommandsMixin, click.RichGroup):
    """
    Main Jarvis CLI class.

    This class combines all command mixins to provide the full CLI functionality:
    - PanelCommandsMixin: Commands for the hosting control panel
    - DatabaseCommandsMixin: Commands for a MySQL server
    - SystemCommandsMixin: Reports about the local machine
    - XcodeCommandsMixin: Building, signing and packaging of macOS apps
    """

    def __init__(self, *args, **kwargs):
        click.RichGroup.__init__(self, *args, invoke_without_command=True, **kwargs)
        self.cons = Console()
        self.logger = NULL_LOGGER
        self.transport: httpx.BaseTransport | None = None

        # ~ adding the default commands

        # This command can be used to check if the CLI is working at all
        self.add_command(self.ping_command)

        self.site_group.add_command(self.site_show_command)
        self.site_group.add_command(self.site_types_command)
        self.site_group.add_command(self.site_php_command)
        self.site_group.add_command(self.site_create_command)
        self.site_group.add_command(self.site_delete_command)
        self.site_group.add_command(self.site_conf_command)

        self.crontab_group.add_command(self.crontab_get_command)
        self.crontab_group.add_command(self.crontab_create_command)
        self.crontab_group.add_command(self.crontab_delete_command)

        self.panel_database_group.add_command(self.panel_database_create_command)

        self.panel_group.add_command(self.http_command)
        self.panel_group.add_command(self.site_group)
        self.panel_group.add_command(self.crontab_group)
        self.panel_group.add_command(self.panel_database_group)
        self.add_command(self.panel_group)

        self.database_group.add_command(self.database_create_command)
        self.database_group.add_command(self.database_show_command)
        self.add_command(self.database_group)

        self.system_group.add_command(self.system_info_command)
        self.system_group.add_command(self.system_resource_command)
        self.system_group.add_command(self.system_process_command)
        self.system_group.add_command(self.system_network_command)
        self.system_group.add_command(self.system_disk_command)
        self.add_command(self.system_group)

        self.xcode_group.add_command(self.xcode_info_command)
        self.xcode_group.add_command(self.xcode_version_command)
        self.xcode_group.add_command(self.xcode_bump_command)
        self.xcode_group.add_command(self.xcode_build_command)
        self.xcode_group.add_command(self.xcode_codesign_command)
        self.xcode_group.add_command(self.xcode_package_command)
        self.xcode_group.add_command(self.xcode_setup_command)
        self.add_command(self.xcode_group)

    def format_help(self, ctx, formatter) -> None:
        """
        This method overrides the default "format_help" function of the click.Group class.
        This method is used to override the help string that is printed for the --help
        option of the overall group.
        """
        rich.print(RichLogo())
        rich.print(RichHelp())

        self.format_usage(ctx, formatter)
        self.format_options(ctx, formatter)
        self.format_epilog(ctx, formatter)

    @click.command("ping", short_help="Check that jarvis is responding.")
    @click.pass_obj
    def ping_command(self) -> None:
        click.echo("pang")


@click.group(cls=CLI)
@click.option("-v", "--version", is_flag=True, help="Print the version and exit.")
@click.option("--debug", is_flag=True, help="Write debug messages to stderr.")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None,
              help="Write debug messages to this file.")
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool, log_file: str | None) -> None:
    """Console script for jarvis."""

    ctx.obj = ctx.command
    ctx.obj.logger = create_logger(debug=debug, log_path=log_file)

    if version:
        version = get_version()
        click.secho(version)
        sys.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


if __name__ == "__main__":
    cli()  # pragma: no cover
