"""Data models shared across the package."""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Integral
from typing import Any, Union

from openpyxl.utils import get_column_letter

CellValue = Union[None, bool, int, float, str]
Record = dict[str, CellValue]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_positive_int(value: Any, field_name: str) -> int:
    result = _to_non_negative_int(value, field_name)
    if result < 1:
        raise ValueError(f"{field_name} must be >= 1")
    return result


@dataclass(frozen=True)
class VisibleColumn:
    """A column whose header cell is non-empty.

    ``ordinal`` is the 1-based number the user passes to ``--columns``;
    ``position`` is the 0-based index of the column in the whole sheet.
    """

    ordinal: int
    position: int
    header: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "ordinal", _to_positive_int(self.ordinal, "ordinal"))
        object.__setattr__(self, "position", _to_non_negative_int(self.position, "position"))

    @property
    def letter(self) -> str:
        return get_column_letter(self.position + 1)


@dataclass(frozen=True)
class ResolvedColumn:
    """A selected column paired with its JSON key."""

    column: VisibleColumn
    key: str

    @property
    def position(self) -> int:
        return self.column.position

    @property
    def header(self) -> str:
        return self.column.header


@dataclass
class ConversionSummary:
    """Outcome of a single successful conversion run."""

    input_path: str = ""
    sheet: str = ""
    output_path: str = ""
    visible_columns: int = 0
    selected_columns: int = 0
    records: int = 0

    def __post_init__(self) -> None:
        self.visible_columns = _to_non_negative_int(self.visible_columns, "visible_columns")
        self.selected_columns = _to_non_negative_int(self.selected_columns, "selected_columns")
        self.records = _to_non_negative_int(self.records, "records")


@dataclass
class SheetConversion:
    """Columns and records derived from one sheet."""

    visible: list[VisibleColumn] = field(default_factory=list)
    columns: list[ResolvedColumn] = field(default_factory=list)
    records: list[Record] = field(default_factory=list)
