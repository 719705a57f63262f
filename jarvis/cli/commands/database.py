"""
Command implementations for the administration of a MySQL server.
"""

import sys

import rich_click as click
from rich.markup import escape

from jarvis.cli.utils import mask_secret
from jarvis.config import Config
from jarvis.mysql import MySQLAdmin, MySQLError


class DatabaseCommandsMixin:
    """
    Mixin class providing the commands which connect directly to a MySQL server.

    This mixin provides commands for:
    - database group: Container for the MySQL commands, holds the connection options
    - create: Create a new database
    - show: List all databases
    """

    @click.group("database", short_help="Command group for the administration of a MySQL server.")
    @click.option("--host", type=click.STRING, default=None,
                  help="The host of the MySQL server. Defaults to JARVIS_MYSQL_HOST or 127.0.0.1.")
    @click.option("--port", type=click.INT, default=None,
                  help="The port of the MySQL server. Defaults to JARVIS_MYSQL_PORT or 3306.")
    @click.option("-u", "--username", type=click.STRING, default=None,
                  help="The MySQL user. Defaults to JARVIS_MYSQL_USERNAME or root.")
    @click.option("-p", "--password", type=click.STRING, default=None,
                  help="The password of the user. Defaults to JARVIS_MYSQL_PASSWORD or root.")
    @click.pass_obj
    def database_group(
        self,
        host: str | None,
        port: int | None,
        username: str | None,
        password: str | None,
    ) -> None:
        """
        This command group contains the commands which connect to a MySQL server with the given
        credentials. Options which are not given fall back to the JARVIS_MYSQL_* environment variables.
        """
        config = Config()
        self.mysql = MySQLAdmin(
            host=host if host is not None else config.get("mysql_host"),
            port=port if port is not None else config.get("mysql_port"),
            username=username if username is not None else config.get("mysql_username"),
            password=password if password is not None else config.get("mysql_password"),
            logger=self.logger,
        )

    def print_connection(self) -> None:
        self.cons.print(
            f"[bright_black]mysql://{escape(self.mysql.username)}:{mask_secret(self.mysql.password)}"
            f"@{escape(self.mysql.host)}:{self.mysql.port}[/bright_black]"
        )

    @click.command("create", short_help="Create a new database.")
    @click.option("--name", type=click.STRING, required=True, help="The name of the database.")
    @click.pass_obj
    def database_create_command(self, name: str) -> None:
        """
        Creates the database NAME on the server, unless it already exists.
        """
        self.print_connection()
        try:
            self.mysql.create_database(name)
        except MySQLError as exc:
            self.cons.print(f"[red]Error creating the database: {escape(str(exc))}[/red]")
            sys.exit(1)

        self.cons.print(f'[green]✅ database "{escape(name)}" created[/green]')

    @click.command("show", short_help="List all databases.")
    @click.pass_obj
    def database_show_command(self) -> None:
        self.print_connection()
        try:
            names = self.mysql.show_databases()
        except MySQLError as exc:
            self.cons.print(f"[red]Error listing the databases: {escape(str(exc))}[/red]")
            sys.exit(1)

        for name in names:
            click.echo(name)
