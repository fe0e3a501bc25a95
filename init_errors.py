"""Error kinds raised while materializing an instance's schemas to disk."""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    USAGE_CONFLICT = "usage conflict"
    CONNECTIVITY = "connectivity"
    NOT_FOUND = "not found"
    IO = "i/o"
    PARTIAL_WRITE_ABORT = "partial write abort"
    CONFIG = "config"


class InitError(Exception):
    kind: ErrorKind = ErrorKind.IO

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        # Set to the schema_dir.Dir being created when raised from Dir.create_subdir
        self.dir = None

    def __str__(self) -> str:
        return self.message


class UsageConflictError(InitError):
    """Target dir is already managed, or already holds table files."""

    kind = ErrorKind.USAGE_CONFLICT


class ConnectivityError(InitError):
    kind = ErrorKind.CONNECTIVITY


class NotFoundError(InitError):
    kind = ErrorKind.NOT_FOUND


class FilesystemError(InitError):
    kind = ErrorKind.IO


class PartialWriteError(InitError):
    """A table file could not be written; earlier files are left in place."""

    kind = ErrorKind.PARTIAL_WRITE_ABORT


class ConfigError(InitError):
    kind = ErrorKind.CONFIG
