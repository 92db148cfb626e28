"""Header normalisation, column selection and record building — pure functions."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta
from typing import Any

import pandas as pd

from excel2json.errors import (
    DuplicateKeyError,
    EmptyKeyError,
    EmptySheetError,
    InvalidColumnError,
)
from excel2json.models import (
    CellValue,
    Record,
    ResolvedColumn,
    SheetConversion,
    VisibleColumn,
)

# ── Header normalisation ────────────────────────────────────────

# Headers consisting of exactly one of these symbols become the word.
SYMBOL_WORDS: dict[str, str] = {
    "#": "number",
    "@": "at",
    "%": "percent",
    "$": "usd",
    "/": "slash",
    "&": "and",
}

# In-text substitutions applied during the left-to-right scan.
SYMBOL_SUBSTITUTIONS: dict[str, str] = {
    "/": "_",
    "&": "_and_",
    "@": "_at_",
    "#": "_",
    "%": "_percent_",
    "$": "_usd_",
}

_DROPPED_CHARS = frozenset("()")


def _collapse_underscores(text: str) -> str:
    return "_".join(part for part in text.split("_") if part)


def normalize_header(raw: str, position: int | None = None) -> str:
    """Map a human-written header to a safe JSON key.

    ``"Price ($)"`` -> ``"price_usd"``, ``"Profit & Loss"`` -> ``"profit_and_loss"``,
    ``"#"`` -> ``"number"``.

    Raises
    ------
    EmptyKeyError
        If nothing alphanumeric survives normalisation.
    """
    trimmed = str(raw).strip()
    lowered = trimmed.lower()
    if lowered in SYMBOL_WORDS:
        return SYMBOL_WORDS[lowered]

    out: list[str] = []
    for ch in lowered:
        if ch in _DROPPED_CHARS:
            continue
        if ch in SYMBOL_SUBSTITUTIONS:
            out.append(SYMBOL_SUBSTITUTIONS[ch])
        elif ch.isalnum():
            out.append(ch)
        else:
            # whitespace and any other punctuation
            out.append("_")

    key = _collapse_underscores("".join(out))
    if not key:
        raise EmptyKeyError(trimmed, position)
    return key


def resolve_keys(columns: Iterable[VisibleColumn]) -> list[ResolvedColumn]:
    """Normalise the header of every selected column.

    A column selected twice keeps one key; two different columns that
    normalise to the same key raise :class:`DuplicateKeyError`.

    Duplicate policy: strict, but scoped to the selection. Headers left out
    by ``--columns`` are never normalised, so they cannot collide (or fail
    as empty keys). Without ``--columns`` every visible header is selected,
    which makes sibling headers such as ``"Email"`` and ``"email"`` an error.
    """
    resolved: list[ResolvedColumn] = []
    owners: dict[str, VisibleColumn] = {}
    for column in columns:
        key = normalize_header(column.header, column.position)
        owner = owners.get(key)
        if owner is not None and owner.position != column.position:
            raise DuplicateKeyError(key, owner.header, column.header)
        owners[key] = column
        resolved.append(ResolvedColumn(column=column, key=key))
    return resolved


# ── Visible columns ─────────────────────────────────────────────


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return bool(pd.api.types.is_scalar(value) and pd.isna(value))


def header_text(value: Any) -> str:
    """Render a header cell as text (blank cells become ``""``)."""
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def select_visible(header_row: Sequence[Any]) -> list[VisibleColumn]:
    """Number the non-empty header cells 1..N in sheet order."""
    visible: list[VisibleColumn] = []
    for position, cell in enumerate(header_row):
        text = header_text(cell).strip()
        if not text:
            continue
        visible.append(VisibleColumn(ordinal=len(visible) + 1, position=position, header=text))
    return visible


def parse_column_list(text: str) -> list[int]:
    """Parse a ``--columns`` value such as ``"1,3,2"``."""
    ordinals: list[int] = []
    for token in text.split(","):
        token = token.strip()
        try:
            ordinals.append(int(token))
        except ValueError:
            raise InvalidColumnError(
                f"Invalid column number: {token!r} (expected comma-separated integers, e.g. 1,2,3)"
            ) from None
    return ordinals


def resolve_selection(
    visible: Sequence[VisibleColumn], requested: Sequence[int] | None = None
) -> list[VisibleColumn]:
    """Map user ordinals onto visible columns, keeping the user's order.

    ``None`` or an empty selection means every visible column.
    """
    if not requested:
        return list(visible)

    maximum = len(visible)
    selected: list[VisibleColumn] = []
    for ordinal in requested:
        if ordinal < 1 or ordinal > maximum:
            raise InvalidColumnError(
                f"Column number {ordinal} is out of range "
                f"(sheet has {maximum} visible column{'s' if maximum != 1 else ''}; "
                f"valid: 1-{maximum})",
                ordinal=ordinal,
                maximum=maximum,
            )
        selected.append(visible[ordinal - 1])
    return selected


# ── Cell values ─────────────────────────────────────────────────


def convert_cell(value: Any) -> CellValue:
    """Convert a parsed cell to a JSON scalar, keeping its type."""
    if _is_missing(value):
        return None
    if isinstance(value, str):
        return value if value != "" else None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    item = getattr(value, "item", None)
    if callable(item):
        # numpy scalars
        return convert_cell(item())
    raise TypeError(f"Unsupported cell value of type {type(value).__name__}")


# ── Records ─────────────────────────────────────────────────────


def build_record(row: Sequence[Any], columns: Iterable[ResolvedColumn]) -> Record:
    record: Record = {}
    for column in columns:
        value = row[column.position] if column.position < len(row) else None
        record[column.key] = convert_cell(value)
    return record


def build_records(
    rows: Iterable[Sequence[Any]], columns: Sequence[ResolvedColumn]
) -> list[Record]:
    return [build_record(row, columns) for row in rows]


def sheet_to_records(
    frame: pd.DataFrame, requested: Sequence[int] | None = None, *, sheet: str = ""
) -> SheetConversion:
    """Turn a header-less sheet frame (row 0 = headers) into records.

    Raises
    ------
    EmptySheetError
        If the sheet has no rows or its first row has no non-empty cell.
    InvalidColumnError, EmptyKeyError, DuplicateKeyError
        See :func:`resolve_selection` and :func:`resolve_keys`.
    """
    if frame.empty:
        raise EmptySheetError(sheet)

    visible = select_visible(frame.iloc[0].tolist())
    if not visible:
        raise EmptySheetError(sheet, "header row has no non-empty cells")

    columns = resolve_keys(resolve_selection(visible, requested))
    rows = frame.iloc[1:].itertuples(index=False, name=None)
    return SheetConversion(visible=visible, columns=columns, records=build_records(rows, columns))
