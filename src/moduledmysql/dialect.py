# src/moduledmysql/dialect.py
"""MySQL dialect helpers shared by the DDL synthesizer and the connection handle."""

from typing import Sequence

from .errors import ParameterCountError

PLACEHOLDER = "?"


def format_identifier(identifier: str) -> str:
    """Quote identifier (table/column name)

    MySQL uses backticks for identifiers
    """
    if '`' in identifier:
        escaped = identifier.replace('`', '``')
        return f"`{escaped}`"
    return f"`{identifier}`"


def placeholders(count: int) -> str:
    """Comma separated placeholder list, e.g. ``?, ?, ?``."""
    return ", ".join([PLACEHOLDER] * count)


def count_placeholders(sql: str) -> int:
    """Count ``?`` placeholders outside quoted strings and identifiers.

    Question marks inside '...', "..." and `...` do not bind parameters.
    Backslash escapes and doubled quotes are both honoured inside strings.
    """
    count = 0
    quote = None
    i = 0
    length = len(sql)
    while i < length:
        ch = sql[i]
        if quote:
            if ch == '\\' and quote != '`':
                i += 2
                continue
            if ch == quote:
                if i + 1 < length and sql[i + 1] == quote:
                    i += 2
                    continue
                quote = None
        elif ch in ("'", '"', '`'):
            quote = ch
        elif ch == PLACEHOLDER:
            count += 1
        i += 1
    return count


def check_parameter_count(sql: str, params: Sequence) -> None:
    """Verify every placeholder has exactly one parameter.

    Raises:
        ParameterCountError: If the counts differ.
    """
    needed = count_placeholders(sql)
    if needed != len(params):
        raise ParameterCountError(
            f"Parameter count mismatch: SQL needs {needed} "
            f"parameters but {len(params)} were provided"
        )
