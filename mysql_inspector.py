"""Read schema and table definitions from a live MySQL instance."""

from __future__ import annotations

import dataclasses
import logging

import mysql.connector

from init_errors import ConnectivityError, NotFoundError
from option_config import Config


logger = logging.getLogger(__name__)

SYSTEM_SCHEMAS = ("information_schema", "performance_schema", "mysql", "sys")
CONNECT_TIMEOUT = 10


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


@dataclasses.dataclass
class Table:
    name: str
    create_statement: str
    has_auto_increment: bool = False


class Instance:
    def __init__(
        self, host: str, port: int = 3306, socket: str | None = None, user: str = "root", password: str = ""
    ) -> None:
        self.host = host
        self.port = port
        self.socket = socket
        self.user = user
        self.password = password
        self._conn = None

    def __str__(self) -> str:
        if self.socket:
            return f"{self.host}:{self.socket}"
        return f"{self.host}:{self.port}"

    def connect_params(self) -> dict:
        params = {
            "user": self.user,
            "password": self.password,
            "connection_timeout": CONNECT_TIMEOUT,
        }
        if self.socket:
            params["unix_socket"] = self.socket
        else:
            params["host"] = self.host
            params["port"] = self.port
        return params

    def connection(self):
        if self._conn is None:
            try:
                self._conn = mysql.connector.connect(**self.connect_params())
            except mysql.connector.Error as err:
                raise ConnectivityError(f"Unable to connect to {self}: {err}") from err
        return self._conn

    def check_connection(self) -> None:
        self.query("SELECT 1")

    def query(self, sql: str, params: tuple = ()) -> list[tuple]:
        logger.debug("%s: %s %r", self, sql, params)
        try:
            cursor = self.connection().cursor()
            try:
                cursor.execute(sql, params)
                return cursor.fetchall()
            finally:
                cursor.close()
        except mysql.connector.Error as err:
            raise ConnectivityError(f"Query failed on {self}: {err}") from err

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def schema_names(self) -> list[str]:
        placeholders = ", ".join(["%s"] * len(SYSTEM_SCHEMAS))
        rows = self.query(
            "SELECT schema_name FROM information_schema.schemata "
            f"WHERE schema_name NOT IN ({placeholders}) "
            "ORDER BY schema_name",
            SYSTEM_SCHEMAS,
        )
        return [str(row[0]) for row in rows]

    def has_schema(self, name: str) -> bool:
        return name in self.schema_names()

    def schema(self, name: str) -> "Schema":
        if not self.has_schema(name):
            raise NotFoundError(f"Schema {name} does not exist on instance {self}")
        return Schema(self, name)

    def schemas(self) -> list["Schema"]:
        return [Schema(self, name) for name in self.schema_names()]


class Schema:
    def __init__(self, instance: Instance, name: str) -> None:
        self.instance = instance
        self.name = name

    def __str__(self) -> str:
        return self.name

    def table_names(self) -> list[str]:
        rows = self.instance.query(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = %s AND table_type = 'BASE TABLE' "
            "ORDER BY table_name",
            (self.name,),
        )
        return [str(row[0]) for row in rows]

    def auto_increment_tables(self) -> set[str]:
        rows = self.instance.query(
            "SELECT DISTINCT table_name FROM information_schema.columns "
            "WHERE table_schema = %s AND extra LIKE %s",
            (self.name, "%auto_increment%"),
        )
        return {str(row[0]) for row in rows}

    def show_create_table(self, table: str) -> str:
        rows = self.instance.query(
            f"SHOW CREATE TABLE {quote_identifier(self.name)}.{quote_identifier(table)}"
        )
        if not rows:
            raise NotFoundError(f"Table {self.name}.{table} does not exist on instance {self.instance}")
        statement = rows[0][1]
        if isinstance(statement, (bytes, bytearray)):
            try:
                statement = statement.decode("utf-8")
            except UnicodeDecodeError as err:
                raise ConnectivityError(
                    f"Unable to decode CREATE TABLE for {self.name}.{table} on {self.instance}: {err}"
                ) from err
        return str(statement)

    def tables(self) -> list[Table]:
        auto_inc = self.auto_increment_tables()
        return [
            Table(name, self.show_create_table(name), name in auto_inc)
            for name in self.table_names()
        ]


def first_instance(cfg: Config) -> Instance | None:
    """Build and connect to the instance described by cfg, or None if no host was given."""
    host = cfg.get("host")
    if not host:
        return None
    socket = None
    if host == "localhost" and not cfg.changed("port"):
        socket = cfg.get("socket")
    inst = Instance(
        host,
        port=cfg.get_int("port"),
        socket=socket,
        user=cfg.get("user"),
        password=cfg.get("password"),
    )
    inst.check_connection()
    logger.debug("Connected to %s", inst)
    return inst
