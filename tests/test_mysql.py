import pytest

from jarvis.mysql import MySQLAdmin, MySQLError, validate_database_name


@pytest.mark.parametrize("name", ["blog", "my_db", "shop$2024", "DB1"])
def test_validate_database_name_accepts_safe_names(name):
    assert validate_database_name(name) == name


@pytest.mark.parametrize("name", ["my-db", "a b", "x`; DROP DATABASE y; --", "über"])
def test_validate_database_name_rejects_unsafe_names(name):
    with pytest.raises(MySQLError):
        validate_database_name(name)


def test_validate_database_name_rejects_empty_name():
    with pytest.raises(MySQLError) as info:
        validate_database_name("")

    assert "provide" in str(info.value)


def test_url_uses_pymysql_and_utf8mb4():
    admin = MySQLAdmin(host="db.local", port=3307, username="admin", password="p@ss")
    url = admin.url()

    assert url.drivername == "mysql+pymysql"
    assert url.host == "db.local"
    assert url.port == 3307
    assert url.username == "admin"
    assert url.password == "p@ss"
    assert url.database is None
    assert url.query["charset"] == "utf8mb4"


def test_create_database_quotes_the_name(monkeypatch):
    statements = []
    monkeypatch.setattr(MySQLAdmin, "execute", lambda self, statement: statements.append(statement) or [])

    MySQLAdmin().create_database("blog")
    assert statements == ["CREATE DATABASE IF NOT EXISTS `blog`"]


def test_create_database_validates_before_executing(monkeypatch):
    statements = []
    monkeypatch.setattr(MySQLAdmin, "execute", lambda self, statement: statements.append(statement) or [])

    with pytest.raises(MySQLError):
        MySQLAdmin().create_database("bad-name")

    assert statements == []


def test_show_databases(monkeypatch):
    monkeypatch.setattr(MySQLAdmin, "execute", lambda self, statement: [("information_schema",), ("blog",)])
    assert MySQLAdmin().show_databases() == ["information_schema", "blog"]


def test_unreachable_server_raises_mysql_error():
    admin = MySQLAdmin(host="127.0.0.1", port=1, username="root", password="root")
    with pytest.raises(MySQLError):
        admin.show_databases()
