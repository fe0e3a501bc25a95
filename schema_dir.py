"""Filesystem dirs holding a .skeema option file and one .sql file per table."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from init_errors import FilesystemError, InitError, UsageConflictError
from option_config import Config
from option_file import OPTION_FILE_NAME, OptionFile


logger = logging.getLogger(__name__)


class Dir:
    def __init__(self, path: Path, config: Config) -> None:
        self.path = path
        self.config = config

    def __str__(self) -> str:
        return str(self.path)

    @classmethod
    def open(cls, path: str | Path, config: Config) -> "Dir":
        """Bind path to config merged with every .skeema file in it or its ancestors.

        Options this tool does not use, such as flavor, are skipped.
        """
        path = Path(path).expanduser().absolute()
        loaded = set(config.sources)
        for ancestor in reversed([path, *path.parents]):
            option_path = ancestor / OPTION_FILE_NAME
            if str(option_path) in loaded or not option_path.is_file():
                continue
            logger.debug("Loading option file %s", option_path)
            config = config.with_option_file(OptionFile.read(option_path), str(option_path), ignore_unknown=True)
        return cls(path, config)

    @property
    def option_file_path(self) -> Path:
        return self.path / OPTION_FILE_NAME

    def create_if_missing(self) -> bool:
        """Create the dir if needed, returning True if it did not exist before."""
        if self.path.exists():
            if not self.path.is_dir():
                raise FilesystemError(f"{self.path} already exists but is not a directory")
            return False
        try:
            self.path.mkdir(parents=True)
        except OSError as err:
            raise FilesystemError(f"Unable to create {self.path}: {err}") from err
        return True

    def has_option_file(self) -> bool:
        return self.option_file_path.exists()

    def create_option_file(self, option_file: OptionFile) -> None:
        if self.has_option_file():
            raise UsageConflictError(f"Cannot use dir {self.path}: already has {OPTION_FILE_NAME} file")
        try:
            option_file.write(self.option_file_path)
        except OSError as err:
            raise FilesystemError(f"Unable to write {self.option_file_path}: {err}") from err
        self.config = self.config.with_option_file(option_file, str(self.option_file_path))

    def sql_files(self) -> list[str]:
        try:
            return sorted(p.name for p in self.path.glob("*.sql") if p.is_file())
        except OSError as err:
            raise FilesystemError(f"Unable to list files in {self.path}: {err}") from err

    def create_subdir(self, name: str, option_file: OptionFile) -> "Dir":
        """Create dir name under this one and write option_file into it.

        Errors raised from here carry the new Dir as .dir, so the caller can
        report which path was attempted.
        """
        subdir = Dir(self.path / name, self.config)
        try:
            if subdir.path.is_dir():
                if subdir.has_option_file():
                    raise UsageConflictError(f"{subdir.path} already has {OPTION_FILE_NAME} file")
                if subdir.sql_files():
                    raise UsageConflictError(f"{subdir.path} already contains *.sql files")
            elif subdir.path.exists():
                raise UsageConflictError(f"{subdir.path} already exists but is not a directory")
            subdir.create_if_missing()
            subdir.create_option_file(option_file)
        except InitError as err:
            err.dir = subdir
            raise
        return subdir


@dataclasses.dataclass
class SQLFile:
    dir: Dir
    file_name: str
    contents: str

    @property
    def path(self) -> Path:
        return self.dir.path / self.file_name

    def write(self) -> int:
        """Write the statement terminated by ";\\n", returning the number of bytes written."""
        text = self.contents.rstrip()
        if not text.endswith(";"):
            text += ";"
        data = (text + "\n").encode("utf-8")
        self.path.write_bytes(data)
        return len(data)
