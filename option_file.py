"""In-memory representation of a .skeema option file.

An option file is line-oriented:

    schema=app

    [production]
    host=db1.example.com
    port=3306

Lines before the first [section] header belong to the global section, named
"" here. Sections and keys keep their insertion order when serialized.
"""

from __future__ import annotations

import re
from pathlib import Path

from init_errors import ConfigError


OPTION_FILE_NAME = ".skeema"

SECTION_RE = re.compile(r"^\[([^\[\]]*)\]$")
OPTION_RE = re.compile(r"^([A-Za-z0-9_-]+)\s*(?:=\s*(.*))?$")


def unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


class OptionFile:
    def __init__(self, name: str = OPTION_FILE_NAME) -> None:
        self.name = name
        self._sections: dict[str, dict[str, str]] = {"": {}}

    def set_option_value(self, section: str, key: str, value: str) -> None:
        self._sections.setdefault(section, {})[key] = value

    def get_option_value(self, section: str, key: str) -> str | None:
        return self._sections.get(section, {}).get(key)

    @property
    def sections(self) -> list[str]:
        return list(self._sections)

    def section_values(self, *names: str) -> dict[str, str]:
        """Merge the named sections in order; later sections win."""
        merged: dict[str, str] = {}
        for name in names:
            merged.update(self._sections.get(name, {}))
        return merged

    def serialize(self) -> str:
        blocks: list[str] = []
        for section, values in self._sections.items():
            lines = [f"{key}={value}" for key, value in values.items()]
            if section:
                lines.insert(0, f"[{section}]")
            elif not lines:
                continue
            blocks.append("\n".join(lines))
        if not blocks:
            return ""
        return "\n\n".join(blocks) + "\n"

    def write(self, path: Path) -> int:
        text = self.serialize()
        path.write_text(text, encoding="utf-8")
        return len(text.encode("utf-8"))

    @classmethod
    def parse(cls, text: str, source: str = OPTION_FILE_NAME) -> "OptionFile":
        option_file = cls(Path(source).name)
        section = ""
        for lineno, raw in enumerate(text.splitlines(), 1):
            line = raw.strip()
            if not line or line[0] in ("#", ";"):
                continue
            m = SECTION_RE.match(line)
            if m:
                section = m.group(1).strip()
                option_file._sections.setdefault(section, {})
                continue
            m = OPTION_RE.match(line)
            if not m:
                raise ConfigError(f"Invalid line in {source} at line {lineno}: {raw}")
            key, value = m.group(1), m.group(2)
            if value is None:
                value = "1"
            option_file.set_option_value(section, key, unquote(value.strip()))
        return option_file

    @classmethod
    def read(cls, path: Path) -> "OptionFile":
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as err:
            raise ConfigError(f"Unable to read {path}: {err}") from err
        return cls.parse(text, str(path))
