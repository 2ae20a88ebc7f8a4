"""Rewriting rendered statements into a DBAPI driver's paramstyle.

Dialects render ``?`` markers (SQLite, MySQL, generic) or ``$n`` ordinals
(PostgreSQL). Drivers loaded through SQLAlchemy each expect the style named
by PEP 249 ``paramstyle``; psycopg2 and PyMySQL, for instance, use
``%(name)s``.
"""

from __future__ import annotations

from typing import Any, Sequence

PARAMSTYLES = ("qmark", "numeric", "numeric_dollar", "named", "format", "pyformat")

_QUOTES = ("'", '"', "`")
_KEYED = ("named", "pyformat")


def to_paramstyle(
    sql: str, params: Sequence[Any], paramstyle: str
) -> tuple[str, Sequence[Any] | dict[str, Any]]:
    """Rewrite markers in sql for paramstyle and arrange params to match.

    Markers inside quoted literals and identifiers are left alone. ``$n``
    markers may repeat or appear out of order; positional styles then get
    one parameter per marker occurrence. Literal percent signs are doubled
    for the format styles, which drivers apply even without parameters.

    Args:
        sql: Statement using ``?`` or ``$n`` markers.
        params: Parameters in marker (or ordinal) order.
        paramstyle: Target PEP 249 paramstyle.

    Returns:
        Tuple of (rewritten sql, tuple or dict of parameters).

    Raises:
        ValueError: If paramstyle is unknown or a marker has no parameter.
    """
    if paramstyle not in PARAMSTYLES:
        raise ValueError(f"Unsupported paramstyle: {paramstyle!r}")

    percent = "%%" if paramstyle in ("format", "pyformat") else "%"
    out: list[str] = []
    order: list[int] = []
    quote: str | None = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote is not None:
            if ch == quote:
                quote = None
            out.append(percent if ch == "%" else ch)
        elif ch in _QUOTES:
            quote = ch
            out.append(ch)
        elif ch == "?":
            order.append(len(order))
            out.append(_marker(paramstyle, order[-1]))
        elif ch == "$" and i + 1 < len(sql) and sql[i + 1].isdigit():
            j = i + 1
            while j < len(sql) and sql[j].isdigit():
                j += 1
            order.append(int(sql[i + 1 : j]) - 1)
            out.append(_marker(paramstyle, order[-1]))
            i = j
            continue
        elif ch == "%":
            out.append(percent)
        else:
            out.append(ch)
        i += 1

    for index in order:
        if not 0 <= index < len(params):
            raise ValueError(f"No parameter for marker {index + 1} ({len(params)} given)")

    if paramstyle in _KEYED:
        return "".join(out), {f"p{index}": params[index] for index in order}
    if paramstyle in ("numeric", "numeric_dollar"):
        return "".join(out), tuple(params)
    return "".join(out), tuple(params[index] for index in order)


def _marker(paramstyle: str, index: int) -> str:
    if paramstyle == "qmark":
        return "?"
    if paramstyle == "numeric":
        return f":{index + 1}"
    if paramstyle == "numeric_dollar":
        return f"${index + 1}"
    if paramstyle == "named":
        return f":p{index}"
    if paramstyle == "pyformat":
        return f"%(p{index})s"
    return "%s"
