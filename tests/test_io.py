from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import Workbook

from excel2json.errors import (
    InputFileNotFoundError,
    MalformedWorkbookError,
    OutputWriteError,
    SheetNotFoundError,
)
from excel2json.io import dump_json, load_sheet, write_json
from excel2json.pipeline import convert_cell


def _write_workbook(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path


# ── Loading ──────────────────────────────────────────────────────


def test_load_sheet_keeps_cell_types(tmp_path: Path) -> None:
    path = _write_workbook(
        tmp_path / "types.xlsx",
        {
            "Data": [
                ["Name", "Age", "Active", "Joined", "Code", "Double"],
                ["Ann", 30, True, datetime(2024, 1, 5), "007", "=B2*2"],
                ["Bob", 2.5, False, None, "x", None],
            ]
        },
    )

    frame = load_sheet(path, "Data")

    assert frame.shape == (3, 6)
    assert frame.iloc[0].tolist() == ["Name", "Age", "Active", "Joined", "Code", "Double"]
    assert frame.iloc[1, 1] == 30
    assert frame.iloc[2, 1] == 2.5
    assert convert_cell(frame.iloc[1, 2]) is True
    assert convert_cell(frame.iloc[2, 2]) is False
    assert frame.iloc[1, 3] == datetime(2024, 1, 5)
    assert frame.iloc[1, 4] == "007"
    assert pd.isna(frame.iloc[2, 3])
    # formula written without a cached result
    assert pd.isna(frame.iloc[1, 5])


def test_load_sheet_selects_sheet_by_exact_name(tmp_path: Path) -> None:
    path = _write_workbook(
        tmp_path / "multi.xlsx",
        {"First": [["a"], [1]], "Second": [["b"], [2]]},
    )

    frame = load_sheet(path, "Second")

    assert frame.iloc[0, 0] == "b"
    assert frame.iloc[1, 0] == 2


def test_load_sheet_unknown_sheet_lists_available(tmp_path: Path) -> None:
    path = _write_workbook(tmp_path / "book.xlsx", {"Data": [["a"]], "Other": [["b"]]})

    with pytest.raises(SheetNotFoundError) as excinfo:
        load_sheet(path, "data")

    assert excinfo.value.available == ["Data", "Other"]
    assert "'Data', 'Other'" in str(excinfo.value)


def test_load_sheet_missing_file(tmp_path: Path) -> None:
    with pytest.raises(InputFileNotFoundError, match="does not exist"):
        load_sheet(tmp_path / "nope.xlsx", "Data")


def test_load_sheet_rejects_directory_path(tmp_path: Path) -> None:
    input_dir = tmp_path / "fake.xlsx"
    input_dir.mkdir()

    with pytest.raises(InputFileNotFoundError, match="not a file"):
        load_sheet(input_dir, "Data")


def test_load_sheet_malformed_workbook(tmp_path: Path) -> None:
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"this is not a zip archive")

    with pytest.raises(MalformedWorkbookError, match="broken.xlsx"):
        load_sheet(path, "Data")


def test_load_sheet_unsupported_extension(tmp_path: Path) -> None:
    path = tmp_path / "data.csv"
    path.write_text("a,b\n1,2\n", encoding="utf-8")

    with pytest.raises(MalformedWorkbookError, match="unsupported file type"):
        load_sheet(path, "Data")


def test_load_sheet_xls_missing_xlrd_raises_friendly_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    xls_path = tmp_path / "legacy.xls"
    xls_path.write_bytes(b"x")

    def _fake_excel_file(path: Path, **kwargs: object) -> pd.ExcelFile:
        del path
        assert kwargs["engine"] == "xlrd"
        raise ImportError("Missing optional dependency 'xlrd'")

    monkeypatch.setattr(pd, "ExcelFile", _fake_excel_file)

    with pytest.raises(MalformedWorkbookError, match="xlrd"):
        load_sheet(xls_path, "Data")


def test_load_sheet_unreadable_file_reports_file_not_found(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    path = _write_workbook(tmp_path / "locked.xlsx", {"Data": [["a"]]})

    def _fake_excel_file(path: Path, **kwargs: object) -> pd.ExcelFile:
        del path, kwargs
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(pd, "ExcelFile", _fake_excel_file)

    with pytest.raises(InputFileNotFoundError, match="not readable"):
        load_sheet(path, "Data")


# ── Writing ──────────────────────────────────────────────────────


def test_write_json_keeps_key_order_and_is_atomic(tmp_path: Path) -> None:
    path = tmp_path / "out.json"
    records = [{"zeta": 1, "alpha": "ü", "mid": None, "flag": True}]

    out = write_json(path, records)

    assert out == path
    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert text.index('"zeta"') < text.index('"alpha"') < text.index('"mid"')
    assert '"ü"' in text
    assert json.loads(text) == records
    assert not path.with_suffix(path.suffix + ".tmp").exists()


def test_write_json_overwrites_existing_file(tmp_path: Path) -> None:
    path = tmp_path / "out.json"
    path.write_text("stale", encoding="utf-8")

    write_json(path, [])

    assert json.loads(path.read_text(encoding="utf-8")) == []


def test_write_json_missing_parent_directory(tmp_path: Path) -> None:
    path = tmp_path / "missing" / "out.json"

    with pytest.raises(OutputWriteError, match="out.json"):
        write_json(path, [])

    assert not path.parent.exists()


def test_write_json_onto_directory_cleans_up_temp_file(tmp_path: Path) -> None:
    path = tmp_path / "out.json"
    path.mkdir()

    with pytest.raises(OutputWriteError):
        write_json(path, [{"a": 1}])

    assert not (tmp_path / "out.json.tmp").exists()


@pytest.mark.parametrize("target", [".", "/"])
def test_write_json_path_without_file_name(target: str) -> None:
    with pytest.raises(OutputWriteError, match="is a directory"):
        write_json(Path(target), [])


def test_dump_json_compact_and_indented() -> None:
    data = [{"a": 1, "b": [1, 2]}]

    assert dump_json(data, indent=0) == '[{"a":1,"b":[1,2]}]\n'
    assert dump_json(data, indent=None) == '[{"a":1,"b":[1,2]}]\n'
    assert dump_json(data, indent=2).startswith('[\n  {\n    "a": 1')
