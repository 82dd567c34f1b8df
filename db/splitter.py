"""
db/splitter.py
--------------
Splits a raw migration file into individually executable statements.

The scan is line-oriented: a statement ends at a line whose trimmed text
ends with ``;``, unless that line is inside a dollar-quoted block
(``$$ ... $$`` or ``$tag$ ... $tag$``), where semicolons and ``--`` are
literal text.

Known limitation: only the first dollar-quote delimiter on a line is
examined, so a line that both opens and closes a block (``AS $$ SELECT 1; $$;``)
leaves the scanner inside the quote. Write such bodies across lines.
"""

import re
from typing import Iterable

from models.migration import MigrationStatement

DOLLAR_QUOTE = re.compile(r"\$([^$]*)\$")


def _is_skippable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("--")


def split_statements(sql_text: str) -> list[MigrationStatement]:
    """
    Split migration SQL into ordered statements.

    Pure and deterministic. Comment-only and blank lines outside a
    dollar-quoted block are dropped; a trailing statement without a
    semicolon is still returned.
    """
    statements: list[MigrationStatement] = []
    buffer: list[str] = []
    in_dollar_quote = False
    dollar_tag = ""

    def flush() -> None:
        sql = "".join(buffer).strip()
        buffer.clear()
        if sql:
            statements.append(MigrationStatement(index=len(statements), sql=sql))

    for line in sql_text.split("\n"):
        if not in_dollar_quote and _is_skippable(line):
            continue

        match = DOLLAR_QUOTE.search(line)
        if match:
            if not in_dollar_quote:
                in_dollar_quote = True
                dollar_tag = match.group(0)
            elif match.group(0) == dollar_tag:
                in_dollar_quote = False
                dollar_tag = ""

        buffer.append(line + "\n")

        if not in_dollar_quote and line.strip().endswith(";"):
            flush()

    flush()
    return statements


def join_statements(statements: Iterable[MigrationStatement]) -> str:
    """Rejoin statements into SQL text that splits back to the same sequence."""
    return "".join(f"{statement.sql}\n" for statement in statements)
