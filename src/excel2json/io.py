"""I/O helpers — load a workbook sheet, write the JSON output."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from excel2json import DEFAULT_INDENT, SUPPORTED_EXTENSIONS
from excel2json.errors import (
    InputFileNotFoundError,
    MalformedWorkbookError,
    OutputWriteError,
    SheetNotFoundError,
)

_OPENPYXL_EXTENSIONS = (".xlsx", ".xlsm", ".xltx", ".xltm")

# ── Loading ──────────────────────────────────────────────────────


def _engine_for(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in _OPENPYXL_EXTENSIONS:
        return "openpyxl"
    if suffix == ".xls":
        return "xlrd"
    supported = ", ".join(SUPPORTED_EXTENSIONS)
    raise MalformedWorkbookError(path, f"unsupported file type {suffix!r} (use {supported})")


def _open_workbook(path: Path) -> pd.ExcelFile:
    engine = _engine_for(path)
    try:
        return pd.ExcelFile(path, engine=engine)
    except ImportError as exc:
        raise MalformedWorkbookError(
            path,
            "reading .xls requires 'xlrd' (pip install xlrd) or convert the file to .xlsx",
        ) from exc
    except PermissionError as exc:
        raise InputFileNotFoundError(path, "is not readable") from exc
    except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError, OSError) as exc:
        raise MalformedWorkbookError(path, str(exc) or type(exc).__name__) from exc


def _check_input(path: Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise InputFileNotFoundError(path)
    if not path.is_file():
        raise InputFileNotFoundError(path, "is not a file")
    return path


def load_sheet(path: Path, sheet: str) -> pd.DataFrame:
    """Load *sheet* from the workbook at *path* as a header-less DataFrame.

    Row 0 holds the header cells. Values keep the type the parser reports
    (no string-to-number coercion); blank cells are NaN. Formula cells carry
    their cached result.

    Raises
    ------
    InputFileNotFoundError
        If *path* does not exist, is a directory or cannot be read.
    SheetNotFoundError
        If the workbook has no sheet named exactly *sheet*.
    MalformedWorkbookError
        If the file cannot be parsed as a workbook.
    """
    path = _check_input(path)
    with _open_workbook(path) as book:
        names = [str(name) for name in book.sheet_names]
        if sheet not in names:
            raise SheetNotFoundError(sheet, names, path)
        try:
            return book.parse(
                sheet,
                header=None,
                dtype=object,
                na_values=[""],
                keep_default_na=False,
            )
        except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError) as exc:
            raise MalformedWorkbookError(path, str(exc) or type(exc).__name__) from exc


# ── Writing ──────────────────────────────────────────────────────


def dump_json(data: Any, indent: int | None = DEFAULT_INDENT) -> str:
    """Serialise *data* keeping key order; ``indent`` of 0/None is compact."""
    if indent:
        return json.dumps(data, indent=indent, ensure_ascii=False, allow_nan=False) + "\n"
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False) + "\n"


def write_json(path: Path, data: Any, indent: int | None = DEFAULT_INDENT) -> Path:
    """Write *data* as JSON to *path* atomically (temp file + rename).

    The parent directory must already exist.

    Raises
    ------
    OutputWriteError
        If the destination cannot be created or written.
    """
    path = Path(path)
    if not path.name:
        # ".", "/" and friends name a directory, never a file
        raise OutputWriteError(path, "is a directory")
    payload = dump_json(data, indent=indent)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise OutputWriteError(path, exc.strerror or str(exc)) from exc
    return path
