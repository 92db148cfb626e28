"""Error kinds raised by a conversion run.

Every failure is terminal: the CLI prints ``<kind>: <message>`` and exits with
:attr:`ConversionError.exit_code`.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from openpyxl.utils import get_column_letter


def _column_label(position: int | None) -> str:
    if position is None:
        return "unknown column"
    return f"column {get_column_letter(position + 1)}"


class ConversionError(Exception):
    """Base class for every terminal conversion failure."""

    kind = "ConversionError"
    exit_code = 2


class InputFileNotFoundError(ConversionError):
    kind = "FileNotFound"

    def __init__(self, path: Path, reason: str = "does not exist") -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Input file {reason}: {self.path}")


class SheetNotFoundError(ConversionError):
    kind = "SheetNotFound"

    def __init__(self, sheet: str, available: Sequence[str], path: Path | None = None) -> None:
        self.sheet = sheet
        self.available = list(available)
        self.path = path
        names = ", ".join(repr(name) for name in self.available) or "none"
        where = f" in {path}" if path is not None else ""
        super().__init__(f"Sheet {sheet!r} not found{where} (available: {names})")


class EmptySheetError(ConversionError):
    kind = "EmptySheet"

    def __init__(self, sheet: str, reason: str = "no header row found") -> None:
        self.sheet = sheet
        self.reason = reason
        super().__init__(f"Sheet {sheet!r} is empty: {reason}")


class EmptyKeyError(ConversionError):
    kind = "EmptyKey"

    def __init__(self, header: str, position: int | None = None) -> None:
        self.header = header
        self.position = position
        super().__init__(
            f"Header {header!r} ({_column_label(position)}) normalizes to an empty key"
        )


class DuplicateKeyError(ConversionError):
    kind = "DuplicateKey"

    def __init__(self, key: str, first_header: str, second_header: str) -> None:
        self.key = key
        self.first_header = first_header
        self.second_header = second_header
        super().__init__(
            f"Headers {first_header!r} and {second_header!r} both normalize to {key!r}. "
            "Rename one or leave it out with --columns."
        )


class InvalidColumnError(ConversionError):
    kind = "InvalidColumn"

    def __init__(
        self, message: str, *, ordinal: int | None = None, maximum: int | None = None
    ) -> None:
        self.ordinal = ordinal
        self.maximum = maximum
        super().__init__(message)


class OutputWriteError(ConversionError):
    kind = "OutputWrite"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot write output {self.path}: {reason}")


class MalformedWorkbookError(ConversionError):
    kind = "MalformedWorkbook"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot read workbook {self.path}: {reason}")
