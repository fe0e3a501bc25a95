"""Command-line and option-file configuration for skeema-init.

Values resolve in this order, last one winning: option defaults, global option
files, .skeema files from the filesystem root down to the target dir, then the
command line. A Config is never mutated; adding an option file returns a new
snapshot.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from init_errors import ConfigError
from option_file import OptionFile


logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "production"
TRUE_VALUES = {"1", "true", "on", "yes"}
FALSE_VALUES = {"0", "false", "off", "no", ""}


@dataclasses.dataclass(frozen=True)
class Option:
    name: str
    short: str | None
    default: str
    help: str
    boolean: bool = False


OPTIONS = [
    Option("host", "h", "", "Database hostname or IP address"),
    Option("port", "P", "3306", "Port to use for database host"),
    Option("socket", "S", "/tmp/mysql.sock", "Absolute path to Unix domain socket file for use when host is localhost"),
    Option("user", "u", "root", "Username to connect to database host"),
    Option("password", "p", "", "Password for database user"),
    Option("dir", "d", "<hostname>", "Base dir for this host's schemas; defaults to creating subdir with name of host"),
    Option("schema", None, "", "Only import the one specified schema; skip creation of subdirs for each schema"),
    Option("include-auto-inc", None, "0", "Include starting auto-inc values in table files", boolean=True),
    Option("temp-schema", None, "_skeema_tmp", "Name of temporary schema used by tooling; never written to disk"),
    Option("debug", None, "0", "Enable debug logging", boolean=True),
]
OPTIONS_BY_NAME = {opt.name: opt for opt in OPTIONS}


def option_values(
    option_file: OptionFile, sections: Iterable[str], source: str, ignore_unknown: bool = False
) -> dict[str, str]:
    """Pick the known options out of the given sections of an option file."""
    values: dict[str, str] = {}
    for key, value in option_file.section_values(*sections).items():
        name = key
        if key.startswith("skip-") and key[5:] in OPTIONS_BY_NAME:
            name = key[5:]
            value = "0" if value.lower() in TRUE_VALUES else "1"
        if name not in OPTIONS_BY_NAME:
            if ignore_unknown:
                continue
            raise ConfigError(f"Unknown option {key} in {source}")
        values[name] = value
    return values


class Config:
    def __init__(
        self,
        cli_values: Mapping[str, str] | None = None,
        sources: Sequence[tuple[str, Mapping[str, str]]] = (),
        environment: str | None = None,
    ) -> None:
        self._cli = dict(cli_values or {})
        self._sources = tuple((source, dict(values)) for source, values in sources)
        self._environment = environment or DEFAULT_ENVIRONMENT

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def sources(self) -> list[str]:
        return [source for source, _ in self._sources]

    def get(self, name: str) -> str:
        if name not in OPTIONS_BY_NAME:
            raise ConfigError(f"Unknown option {name}")
        if name in self._cli:
            return self._cli[name]
        for _, values in reversed(self._sources):
            if name in values:
                return values[name]
        return OPTIONS_BY_NAME[name].default

    def get_int(self, name: str) -> int:
        value = self.get(name)
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"Option {name} must be an integer, found {value!r}") from None

    def get_int_or_default(self, name: str) -> int:
        try:
            return int(self.get(name))
        except ValueError:
            return int(OPTIONS_BY_NAME[name].default)

    def get_bool(self, name: str) -> bool:
        value = self.get(name).strip().lower()
        if value in TRUE_VALUES:
            return True
        if value in FALSE_VALUES:
            return False
        raise ConfigError(f"Option {name} must be a boolean, found {value!r}")

    def changed(self, name: str) -> bool:
        """True if the option was set on the command line or in any option file."""
        if name in self._cli:
            return True
        return any(name in values for _, values in self._sources)

    def on_cli(self, name: str) -> bool:
        return name in self._cli

    def with_values(self, source: str, values: Mapping[str, str]) -> "Config":
        return Config(self._cli, self._sources + ((source, values),), self._environment)

    def with_option_file(self, option_file: OptionFile, source: str, ignore_unknown: bool = False) -> "Config":
        values = option_values(option_file, ("", self._environment), source, ignore_unknown)
        return self.with_values(source, values)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skeema-init",
        description="Save a DB instance's schemas and tables to the filesystem",
        epilog=(
            "The optional environment name selects which section of .skeema files "
            f"connection options are written to (default: {DEFAULT_ENVIRONMENT})."
        ),
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Show this help message and exit")
    for opt in OPTIONS:
        flags = [f"--{opt.name}"]
        if opt.short:
            flags.append(f"-{opt.short}")
        if opt.boolean:
            parser.add_argument(
                *flags, dest=opt.name, action="store_const", const="1", default=argparse.SUPPRESS, help=opt.help
            )
            parser.add_argument(
                f"--skip-{opt.name}", dest=opt.name, action="store_const", const="0", default=argparse.SUPPRESS,
                help=argparse.SUPPRESS,
            )
        else:
            parser.add_argument(
                *flags, dest=opt.name, metavar=opt.name.upper(), default=argparse.SUPPRESS,
                help=f"{opt.help} (default: {opt.default or 'empty'})",
            )
    parser.add_argument("environment", nargs="?", default=None, help="Environment section for config directives")
    return parser


def parse_cli(argv: Sequence[str] | None = None) -> Config:
    # Only options actually passed end up in the namespace, which is what
    # Config.on_cli relies on.
    args = vars(build_parser().parse_args(argv))
    environment = args.pop("environment")
    return Config(args, environment=environment)


def global_option_file_paths() -> list[Path]:
    paths = [Path("/etc/skeema"), Path("/usr/local/etc/skeema")]
    home = os.environ.get("HOME")
    if home:
        paths.append(Path(home) / ".my.cnf")
        paths.append(Path(home) / ".skeema")
    return paths


def add_global_option_files(cfg: Config, paths: Iterable[Path] | None = None) -> Config:
    if paths is None:
        paths = global_option_file_paths()
    for path in paths:
        if not path.is_file():
            continue
        try:
            option_file = OptionFile.read(path)
            if path.name == ".my.cnf":
                values = option_values(option_file, ("client", "skeema"), str(path), ignore_unknown=True)
            else:
                values = option_values(option_file, ("", cfg.environment), str(path), ignore_unknown=True)
        except ConfigError as err:
            logger.warning("Ignoring global option file %s: %s", path, err)
            continue
        logger.debug("Loaded global option file %s", path)
        cfg = cfg.with_values(str(path), values)
    return cfg
