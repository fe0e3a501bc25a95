"""Normalization of SHOW CREATE TABLE output before it is written to a .sql file."""

from __future__ import annotations

import re


# Table options follow the closing paren of the column block, e.g.
# ") ENGINE=InnoDB AUTO_INCREMENT=42 DEFAULT CHARSET=utf8mb4"
TABLE_OPTIONS_AUTO_INC_RE = re.compile(r"^(\) ENGINE=\w+) AUTO_INCREMENT=(\d+)(?=\s|;|$)")


def parse_create_auto_inc(statement: str) -> tuple[str, int]:
    """Return the statement without its AUTO_INCREMENT=n table option, plus n.

    n is 0 when the statement has no such clause. Column-level AUTO_INCREMENT
    attributes are left alone since only the table options line is examined.
    """
    lines = statement.split("\n")
    for idx in range(len(lines) - 1, -1, -1):
        line = lines[idx]
        if not line.startswith(")"):
            continue
        m = TABLE_OPTIONS_AUTO_INC_RE.match(line)
        if not m:
            return statement, 0
        lines[idx] = m.group(1) + line[m.end():]
        return "\n".join(lines), int(m.group(2))
    return statement, 0


def normalize_create_statement(statement: str, strip_auto_inc: bool) -> str:
    if not strip_auto_inc:
        return statement
    try:
        stripped, _ = parse_create_auto_inc(statement)
    except (TypeError, ValueError, AttributeError):
        return statement
    return stripped
