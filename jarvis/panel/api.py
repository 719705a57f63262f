"""
Helpers for the individual panel endpoints.

Each helper builds the form parameters of one panel action, sends them through the given
:class:`PanelClient` and returns the raw response body, which the command line interface prints
as it is. Only the helpers that need to interpret the response (the list lookups) decode it.
"""

import json

from jarvis.panel.client import PanelClient, PanelError
from jarvis.panel.models import PanelItem, decode_error, decode_items

# The folder in which the panel keeps the nginx configuration of all the sites.
NGINX_VHOST_PATH = "/www/server/panel/vhost/nginx"
DEFAULT_WWW_ROOT = "/www/wwwroot"


# == SITES ==

def list_sites(client: PanelClient) -> str:
    return client.request("/data?action=getData&table=sites")


def site_types(client: PanelClient) -> str:
    return client.request("/site?action=get_site_types")


def php_versions(client: PanelClient) -> str:
    return client.request("/site?action=GetPHPVersion")


def webname(domain: str) -> str:
    """
    Returns the JSON encoded "webname" parameter of the AddSite action for the given ``domain``.
    """
    return json.dumps({"domain": domain, "domainlist": [], "count": 0})


def add_site(
    client: PanelClient,
    domain: str,
    path: str | None = None,
    php_version: str = "80",
    port: str = "80",
    ps: str | None = None,
    type_id: str = "0",
) -> str:
    """
    Creates a new PHP site for the given ``domain``. Without an explicit ``path`` the site root
    is ``/www/wwwroot/<domain>`` and without a remark ``ps`` the domain itself is used. Neither
    an FTP account nor a database is created together with the site.
    """
    return client.request("/site?action=AddSite", {
        "webname": webname(domain),
        "path": path or f"{DEFAULT_WWW_ROOT}/{domain}",
        "type_id": str(type_id),
        "type": "PHP",
        "version": str(php_version),
        "port": str(port),
        "ps": ps or domain,
        "ftp": "false",
        "sql": "false",
    })


def delete_site(client: PanelClient, site_id: int, name: str) -> str:
    return client.request("/site?action=DeleteSite", {
        "id": str(site_id),
        "webname": name,
    })


def site_config_path(name: str) -> str:
    return f"{NGINX_VHOST_PATH}/{name}.conf"


def save_site_config(client: PanelClient, name: str, content: str) -> str:
    """
    Overwrites the nginx configuration file of the site with the given ``name``.
    """
    return client.request("/files?action=SaveFileBody", {
        "path": site_config_path(name),
        "data": content,
        "encoding": "utf-8",
    })


def get_sites(client: PanelClient) -> list[PanelItem]:
    body = list_sites(client)
    error = decode_error(body)
    if error is not None:
        raise PanelError(error.message)

    return decode_items(body)


def find_site(client: PanelClient, name: str) -> PanelItem | None:
    for item in get_sites(client):
        if item.name == name:
            return item

    return None


def find_site_by_id(client: PanelClient, site_id: int) -> PanelItem | None:
    for item in get_sites(client):
        if item.id == site_id:
            return item

    return None


# == CRONTAB ==

def get_crontab(client: PanelClient) -> list[PanelItem]:
    """
    Returns the list of all the crontab jobs of the panel.

    :raises PanelError: if the panel answers with an error envelope, using the message of the panel.
    """
    body = client.request("/crontab?action=GetCrontab")
    error = decode_error(body)
    if error is not None:
        raise PanelError(error.message)

    return decode_items(body)


def find_crontab(client: PanelClient, name: str) -> PanelItem | None:
    for item in get_crontab(client):
        if item.name == name:
            return item

    return None


def add_crontab(client: PanelClient, name: str, shell: str) -> str:
    """
    Creates a crontab job with the given ``name`` which runs the ``shell`` script every minute.
    """
    return client.request("/crontab?action=AddCrontab", {
        "name": name,
        "type": "minute-n",
        "sType": "toShell",
        "sBody": shell,
        "where1": "1",
        "hour": "",
        "minute": "",
        "week": "",
        "sName": "",
        "backupTo": "",
        "save": "",
        "urladdress": "",
        "save_local": "1",
        "notice": "",
        "notice_channel": "",
    })


def delete_crontab(client: PanelClient, crontab_id: int) -> str:
    return client.request("/crontab?action=DelCrontab", {"id": str(crontab_id)})


# == DATABASE ==

def add_database(
    client: PanelClient,
    name: str,
    password: str,
    user: str | None = None,
    access: str = "127.0.0.1",
    ps: str | None = None,
) -> str:
    """
    Creates a MySQL database together with a user of the same name (unless ``user`` is given) that
    may access it from the ``access`` address.
    """
    return client.request("/database?action=AddDatabase", {
        "name": name,
        "db_user": user or name,
        "password": password,
        "codeing": "utf8mb4",
        "dtype": "MySQL",
        "dataAccess": access,
        "address": access,
        "ps": ps or name,
    })
