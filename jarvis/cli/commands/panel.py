"""
Command implementations for the hosting control panel.
"""

import sys
import typing as t
import urllib.parse

import rich_click as click
from rich.markup import escape

from jarvis.cli.utils import read_content
from jarvis.config import Config
from jarvis.panel import api
from jarvis.panel.client import PanelClient, PanelError
from jarvis.panel.models import pretty_body


class PanelCommandsMixin:
    """
    Mixin class providing the commands which talk to the hosting panel API.

    This mixin provides commands for:
    - panel group: Container for all panel commands, holds the panel address and key
    - http: Send an arbitrary signed request
    - site: show, types, php, create, delete, conf
    - crontab: get, create, delete
    - database: create
    """

    @click.group("panel", short_help="Command group for the hosting control panel API.")
    @click.option(
        "-s", "--host",
        type=click.STRING,
        default=None,
        help="The address of the panel. Defaults to JARVIS_PANEL_HOST or http://127.0.0.1:8888.",
    )
    @click.option(
        "-k", "--key",
        type=click.STRING,
        default=None,
        help="The API key of the panel. Defaults to JARVIS_PANEL_KEY.",
    )
    @click.pass_obj
    def panel_group(self, host: str | None, key: str | None) -> None:
        """
        This command group contains the commands which send signed requests to the API of the hosting
        control panel. Every request is signed with the API key of the panel, the key itself is never
        sent to the panel.
        """
        config = Config()
        self.panel_host = host if host is not None else config.get("panel_host")
        self.panel_key = key if key is not None else config.get("panel_key")

    # ~ utility methods

    def panel_client(self) -> PanelClient:
        """
        Returns the client for the panel selected by the options of the panel group. Exits with an
        error message if the address or the key of the panel is missing.
        """
        if not self.panel_host:
            self.cons.print("[red]Please provide the address of the panel with --host.[/red]")
            sys.exit(1)

        if not self.panel_key:
            self.cons.print(
                "[red]Please provide the API key of the panel with --key "
                "or the JARVIS_PANEL_KEY environment variable.[/red]"
            )
            sys.exit(1)

        return PanelClient(
            self.panel_host,
            self.panel_key,
            timeout=Config().get("request_timeout"),
            transport=self.transport,
            logger=self.logger,
        )

    def panel_call(self, function: t.Callable, *args, **kwargs) -> t.Any:
        """
        Calls the given panel api ``function`` with the client and the given arguments. Any panel
        error is reported as a red message and terminates the command with exit code 1.
        """
        client = self.panel_client()
        try:
            return function(client, *args, **kwargs)
        except PanelError as exc:
            self.cons.print(f"[red]{escape(str(exc))}[/red]")
            sys.exit(1)

    # ~ http

    @click.command("http", short_help="Send a signed request to an arbitrary panel endpoint.")
    @click.option(
        "--query",
        type=click.STRING,
        required=True,
        help="The path and query of the endpoint, e.g. /plugin?action=a&name=supervisor&s=AddProcess",
    )
    @click.option(
        "--data",
        type=click.STRING,
        default="",
        help="The urlencoded form data, e.g. pjname=abcd&user=www&numprocs=1",
    )
    @click.option("--pretty", is_flag=True, help="Indent the response if it is JSON.")
    @click.pass_obj
    def http_command(self, query: str, data: str, pretty: bool) -> None:
        """
        Sends the given form ``data`` as a signed request to the endpoint ``query`` of the panel and
        prints the response.
        """
        params = dict(urllib.parse.parse_qsl(data, keep_blank_values=True))
        body = self.panel_call(lambda client: client.request(query, params))
        click.echo(pretty_body(body) if pretty else body)

    # ~ site

    @click.group("site", short_help="Manage the sites of the panel.")
    @click.pass_obj
    def site_group(self) -> None:
        pass

    @click.command("show", short_help="List all the sites.")
    @click.pass_obj
    def site_show_command(self) -> None:
        click.echo(self.panel_call(api.list_sites))

    @click.command("types", short_help="List the site categories.")
    @click.pass_obj
    def site_types_command(self) -> None:
        click.echo(self.panel_call(api.site_types))

    @click.command("php", short_help="List the installed PHP versions.")
    @click.pass_obj
    def site_php_command(self) -> None:
        click.echo(self.panel_call(api.php_versions))

    @click.command("create", short_help="Create a new PHP site.")
    @click.option("--domain", type=click.STRING, required=True, help="The domain of the site.")
    @click.option("--path", type=click.STRING, default=None,
                  help="The root folder of the site. Defaults to /www/wwwroot/DOMAIN.")
    @click.option("--php-version", type=click.STRING, default="80", show_default=True,
                  help="The PHP version without the dot, e.g. 80 for PHP 8.0.")
    @click.option("--port", type=click.STRING, default="80", show_default=True)
    @click.option("--ps", type=click.STRING, default=None, help="A remark. Defaults to the domain.")
    @click.option("--type-id", type=click.STRING, default="0", show_default=True,
                  help="The id of the site category.")
    @click.pass_obj
    def site_create_command(
        self,
        domain: str,
        path: str | None,
        php_version: str,
        port: str,
        ps: str | None,
        type_id: str,
    ) -> None:
        body = self.panel_call(
            api.add_site,
            domain,
            path=path,
            php_version=php_version,
            port=port,
            ps=ps,
            type_id=type_id,
        )
        click.echo(body)

    @click.command("delete", short_help="Delete a site by its id or its name.")
    @click.option("--id", "site_id", type=click.INT, default=None, help="The id of the site.")
    @click.option("--name", type=click.STRING, default=None, help="The name (domain) of the site.")
    @click.pass_obj
    def site_delete_command(self, site_id: int | None, name: str | None) -> None:
        """
        Deletes a site. The panel needs both the id and the name of the site, whichever of the two
        is missing is looked up in the list of sites first.
        """
        if site_id is None and not name:
            self.cons.print("[red]Please provide the --id or the --name of the site.[/red]")
            sys.exit(1)

        if site_id is None:
            item = self.panel_call(api.find_site, name)
            if item is None or item.id == 0:
                self.cons.print(f'[red]No site with the name "{escape(name)}" found.[/red]')
                sys.exit(1)

            site_id = item.id
            self.cons.print(f"[blue]The id of the site is {site_id}[/blue]")

        if not name:
            item = self.panel_call(api.find_site_by_id, site_id)
            if item is None or not item.name:
                self.cons.print(f"[red]No site with the id {site_id} found.[/red]")
                sys.exit(1)

            name = item.name

        click.echo(self.panel_call(api.delete_site, site_id, name))

    @click.command("conf", short_help="Overwrite the nginx configuration of a site.")
    @click.option("-n", "--name", type=click.STRING, required=True, help="The name of the site.")
    @click.option("-f", "--file", "file_path", type=click.STRING, default="",
                  help="Path of a file with the new configuration. Takes precedence over --content.")
    @click.option("-c", "--content", type=click.STRING, default="",
                  help="The new configuration.")
    @click.pass_obj
    def site_conf_command(self, name: str, file_path: str, content: str) -> None:
        """
        Replaces the nginx configuration file of the site NAME with the content of the given file or
        the given string.
        """
        if not file_path and not content:
            self.cons.print(
                "[red]Please provide the configuration with --file or --content, "
                "the file takes precedence.[/red]"
            )
            sys.exit(1)

        try:
            content = read_content(file_path, content)
        except OSError as exc:
            self.cons.print(f"[red]Cannot read the configuration file: {escape(str(exc))}[/red]")
            sys.exit(1)

        click.echo(self.panel_call(api.save_site_config, name, content))

    # ~ crontab

    @click.group("crontab", short_help="Manage the crontab jobs of the panel.")
    @click.pass_obj
    def crontab_group(self) -> None:
        pass

    @click.command("get", short_help="List the crontab jobs.")
    @click.pass_obj
    def crontab_get_command(self) -> None:
        """
        Prints one line per crontab job consisting of the id, the type and the name of the job.
        """
        for item in self.panel_call(api.get_crontab):
            click.echo(f"{item.id} {item.type:<16} {item.name}")

    @click.command("create", short_help="Create a crontab job which runs every minute.")
    @click.option("--name", type=click.STRING, required=True, help="The name of the job.")
    @click.option("--shell", type=click.STRING, required=True, help="The shell script to run.")
    @click.pass_obj
    def crontab_create_command(self, name: str, shell: str) -> None:
        click.echo(self.panel_call(api.add_crontab, name, shell))

    @click.command("delete", short_help="Delete a crontab job by its name.")
    @click.option("--name", type=click.STRING, required=True, help="The name of the job.")
    @click.pass_obj
    def crontab_delete_command(self, name: str) -> None:
        """
        Looks up the id of the crontab job NAME and deletes the job.
        """
        item = self.panel_call(api.find_crontab, name)
        if item is None or item.id == 0:
            self.cons.print(f'[red]No crontab job with the name "{escape(name)}" found.[/red]')
            sys.exit(1)

        self.cons.print(f"[blue]The id of the crontab job is {item.id}[/blue]")
        click.echo(self.panel_call(api.delete_crontab, item.id))

    # ~ database

    @click.group("database", short_help="Manage the databases of the panel.")
    @click.pass_obj
    def panel_database_group(self) -> None:
        pass

    @click.command("create", short_help="Create a MySQL database with its own user.")
    @click.option("--name", type=click.STRING, required=True, help="The name of the database.")
    @click.option("--user", type=click.STRING, default=None,
                  help="The name of the database user. Defaults to the name of the database.")
    @click.option("--password", type=click.STRING, required=True, help="The password of the user.")
    @click.option("--access", type=click.STRING, default="127.0.0.1", show_default=True,
                  help="The address from which the user may connect.")
    @click.option("--ps", type=click.STRING, default=None, help="A remark.")
    @click.pass_obj
    def panel_database_create_command(
        self,
        name: str,
        user: str | None,
        password: str,
        access: str,
        ps: str | None,
    ) -> None:
        body = self.panel_call(
            api.add_database,
            name,
            password,
            user=user,
            access=access,
            ps=ps,
        )
        click.echo(body)
