"""Escaping of literals and identifiers for use in SQL text.

Prefer parameterized queries where possible; never escape parameters
that are sent separately.
"""

from __future__ import annotations


def escape_literal(value: str) -> str:
    """Escape a literal and surround it with single quotes.

    If the input contains backslashes the result takes the form ``E'...'``
    (with a leading space), so it is safe whatever the setting of
    ``standard_conforming_strings``.
    """
    return _escape(value, as_ident=False)


def escape_identifier(value: str) -> str:
    """Escape an identifier and surround it with double quotes."""
    return _escape(value, as_ident=True)


def _escape(value: str, as_ident: bool) -> str:
    quote = '"' if as_ident else "'"
    escape_backslashes = not as_ident and "\\" in value

    body = value.replace(quote, quote * 2)
    if escape_backslashes:
        body = body.replace("\\", "\\\\")
        return f" E{quote}{body}{quote}"
    return f"{quote}{body}{quote}"