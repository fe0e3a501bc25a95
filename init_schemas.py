#!/usr/bin/env python3
"""Save a MySQL instance's schemas and tables to the filesystem.

For each schema on the instance (or just the one named by --schema), a subdir
with a .skeema option file is created under the host dir, and populated with
one {table}.sql file per table holding its CREATE TABLE statement.

The optional environment argument selects which section of the host .skeema
file connection options go in, e.g. `skeema-init staging` writes a [staging]
section. The default is "production".

Usage:
    python init_schemas.py [--host HOST] [--port PORT] [--schema SCHEMA] [environment]
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Sequence, TextIO

from create_statement import normalize_create_statement
from init_errors import ConnectivityError, InitError, NotFoundError, PartialWriteError, UsageConflictError
from mysql_inspector import first_instance
from option_config import Config, add_global_option_files, parse_cli
from option_file import OPTION_FILE_NAME, OptionFile
from schema_dir import Dir, SQLFile


logger = logging.getLogger(__name__)


def host_dir_name(cfg: Config) -> str:
    if cfg.changed("dir"):
        return cfg.get("dir")
    port = cfg.get_int_or_default("port")
    if port > 0 and cfg.changed("port"):
        return f"{cfg.get('host')}:{port}"
    return cfg.get("host")


def host_option_file(host_dir: Dir, environment: str, only_schema: str) -> OptionFile:
    cfg = host_dir.config
    option_file = OptionFile()
    if cfg.get("host") == "localhost" and not cfg.changed("port"):
        option_file.set_option_value(environment, "host", "localhost")
        option_file.set_option_value(environment, "socket", cfg.get("socket"))
    else:
        option_file.set_option_value(environment, "host", cfg.get("host"))
        option_file.set_option_value(environment, "port", cfg.get("port"))
    if cfg.on_cli("user"):
        option_file.set_option_value(environment, "user", cfg.get("user"))
    if only_schema:
        # Schema names are assumed to match between environments, so this
        # goes in the global section.
        option_file.set_option_value("", "schema", only_schema)
    return option_file


def populate_schema_dir(schema, parent_dir: Dir, make_subdir: bool, out: TextIO | None = None) -> int:
    """Write one .sql file per table of schema, returning how many were written."""
    if schema.name == parent_dir.config.get("temp-schema"):
        logger.debug("Skipping temp schema %s", schema.name)
        return 0

    if make_subdir:
        option_file = OptionFile()
        option_file.set_option_value("", "schema", schema.name)
        try:
            schema_dir = parent_dir.create_subdir(schema.name, option_file)
        except InitError as err:
            path = err.dir.path if err.dir is not None else parent_dir.path / schema.name
            raise type(err)(f"Unable to use directory {path} for schema {schema.name}: {err}") from err
    else:
        schema_dir = parent_dir
        if schema_dir.sql_files():
            raise UsageConflictError(f"{schema_dir.path} already contains *.sql files; cannot proceed")

    print(f"Populating {schema_dir.path}...", file=out)
    strip_auto_inc = not schema_dir.config.get_bool("include-auto-inc")
    written = 0
    for table in schema.tables():
        statement = table.create_statement
        if table.has_auto_increment:
            statement = normalize_create_statement(statement, strip_auto_inc)
        sf = SQLFile(schema_dir, f"{table.name}.sql", statement)
        try:
            length = sf.write()
        except (OSError, UnicodeError) as err:
            raise PartialWriteError(f"Unable to write to {sf.path}: {err}") from err
        print(f"    Wrote {sf.path} ({length} bytes)", file=out)
        written += 1
    return written


def run_init(
    cfg: Config,
    resolve_instance: Callable[[Config], object] | None = None,
    out: TextIO | None = None,
) -> int:
    """Materialize the configured instance's schemas; returns the number of table files written."""
    if resolve_instance is None:
        resolve_instance = first_instance
    only_schema = cfg.get("schema")
    separate_schema_subdir = only_schema == ""

    host_dir_path = Path(host_dir_name(cfg)).expanduser().absolute()
    if (host_dir_path / OPTION_FILE_NAME).exists():
        raise UsageConflictError(f"Cannot use dir {host_dir_path}: already has {OPTION_FILE_NAME} file")
    host_dir = Dir.open(host_dir_path, cfg)
    was_new_dir = host_dir.create_if_missing()

    # Test the connection before writing any option file, so the dir can be
    # reused after fixing bad connection options.
    inst = resolve_instance(host_dir.config)
    if inst is None:
        raise ConnectivityError(
            "Command line did not specify which instance to connect to; "
            "please supply --host (and optionally --port or --socket)"
        )

    try:
        host_dir.create_option_file(host_option_file(host_dir, cfg.environment, only_schema))

        verb = "Creating and using" if was_new_dir else "Using"
        suffix = "" if separate_schema_subdir else "; skipping schema-level subdirs"
        print(f"{verb} host dir {host_dir.path} for {inst}{suffix}", file=out)

        if only_schema:
            if not inst.has_schema(only_schema):
                raise NotFoundError(f"Schema {only_schema} does not exist on instance {inst}")
            schemas = [inst.schema(only_schema)]
        else:
            schemas = inst.schemas()

        total = 0
        for schema in schemas:
            total += populate_schema_dir(schema, host_dir, separate_schema_subdir, out)
    finally:
        inst.close()

    print(f"\nTotal: {total} tables written to {host_dir.path}", file=out)
    return total


def main(argv: Sequence[str] | None = None) -> int:
    cfg = parse_cli(argv)
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        if cfg.get_bool("debug"):
            logging.getLogger().setLevel(logging.DEBUG)
        cfg = add_global_option_files(cfg)
        run_init(cfg)
    except InitError as err:
        logger.debug("init failed (%s)", err.kind.value, exc_info=True)
        print(f"Error: {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
