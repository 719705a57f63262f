"""
Administration helpers for a (usually local) MySQL server.
"""

import logging
import re

import sqlalchemy
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError

from jarvis.util import NULL_LOGGER

DATABASE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_$]+$")


class MySQLError(Exception):
    pass


def validate_database_name(name: str) -> str:
    """
    Makes sure that the given database ``name`` only consists of letters, digits, underscores and
    dollar signs, so that it can safely be used as a quoted identifier in a statement.

    :raises MySQLError: if the name is empty or contains any other character.

    :returns: The name itself.
    """
    if not name:
        raise MySQLError("please provide the name of the database")

    if not DATABASE_NAME_PATTERN.match(name):
        raise MySQLError(
            f'invalid database name "{name}": only letters, digits, "_" and "$" are allowed'
        )

    return name


class MySQLAdmin:
    """
    Executes administrative statements on the MySQL server at ``host``:``port``. The connection is
    made through SQLAlchemy using the PyMySQL driver, without selecting a default database.

    .. code-block:: python

        admin = MySQLAdmin(host="127.0.0.1", username="root", password="root")
        admin.create_database("blog")
        print(admin.show_databases())

    All SQLAlchemy errors are converted into :class:`MySQLError`.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 3306,
        username: str = "root",
        password: str = "root",
        logger: logging.Logger = NULL_LOGGER,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.logger = logger

    def url(self) -> URL:
        return URL.create(
            "mysql+pymysql",
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            query={"charset": "utf8mb4"},
        )

    def execute(self, statement: str) -> list[tuple]:
        self.logger.debug(f"mysql {self.username}@{self.host}:{self.port} - {statement}")
        engine = sqlalchemy.create_engine(self.url())
        try:
            with engine.begin() as connection:
                result = connection.execute(sqlalchemy.text(statement))
                rows = [tuple(row) for row in result] if result.returns_rows else []
        except SQLAlchemyError as exc:
            raise MySQLError(str(exc.orig if getattr(exc, "orig", None) else exc)) from exc
        finally:
            engine.dispose()

        return rows

    def create_database(self, name: str) -> None:
        validate_database_name(name)
        self.execute(f"CREATE DATABASE IF NOT EXISTS `{name}`")

    def show_databases(self) -> list[str]:
        return [row[0] for row in self.execute("SHOW DATABASES")]
