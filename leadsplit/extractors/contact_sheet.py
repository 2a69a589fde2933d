"""Parser for uploaded contact sheets (CSV or Excel).

A contact sheet carries one contact per row with the columns ``FirstName``,
``Phone`` and ``Notes``. Header matching is case-insensitive and ignores
surrounding whitespace, so ``firstname`` or `` Phone `` are accepted too.
"""

from __future__ import annotations

import re
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd
import xlrd
from xlrd.compdoc import CompDocError

from leadsplit.core.errors import ValidationFault

REQUIRED_COLUMNS = ["FirstName", "Phone", "Notes"]
CSV_SUFFIXES = {".csv"}
EXCEL_SUFFIXES = {".xlsx", ".xls", ".xlsm"}
SUPPORTED_SUFFIXES = CSV_SUFFIXES | EXCEL_SUFFIXES

MIN_PHONE_DIGITS = 7
MAX_SHEET_NOTES = 500


class ContactSheetError(ValidationFault):
    """Raised when an uploaded sheet cannot be turned into contact records."""

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        errors = list((details or {}).get("errors") or [message])
        super().__init__(message, errors)
        self.code = code
        self.details = details or {}


@dataclass
class ContactSheetResult:
    records: list[dict[str, str]] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.records)


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ContactSheetError(
            "UNSUPPORTED_FILE",
            f"Unsupported file type {suffix or '(none)'}; upload a CSV or Excel file",
        )
    try:
        if suffix in CSV_SUFFIXES:
            dataframe = pd.read_csv(path, dtype=str, keep_default_na=False)
        elif suffix == ".xls":
            dataframe = pd.read_excel(path, dtype=str, engine="xlrd")
        else:
            dataframe = pd.read_excel(path, dtype=str, engine="openpyxl")
    except pd.errors.EmptyDataError as exc:
        raise ContactSheetError("EMPTY_FILE", "The uploaded file is empty or contains no data") from exc
    except (ValueError, pd.errors.ParserError, zipfile.BadZipFile, xlrd.XLRDError, CompDocError) as exc:
        raise ContactSheetError("PARSE_ERROR", "Error parsing the uploaded file", {"reason": str(exc)}) from exc

    dataframe = dataframe.fillna("")
    dataframe = dataframe.rename(columns={col: str(col).strip() for col in dataframe.columns})
    if dataframe.empty:
        return dataframe
    blank = dataframe.apply(lambda row: all(str(value).strip() == "" for value in row), axis=1)
    return dataframe[~blank]


def _column_map(columns: list[str]) -> dict[str, str]:
    lookup = {column.lower(): column for column in columns}
    mapping: dict[str, str] = {}
    for required in REQUIRED_COLUMNS:
        source = lookup.get(required.lower())
        if source is not None:
            mapping[required] = source
    return mapping


def _validate_row(row: dict[str, str], row_number: int) -> list[str]:
    errors: list[str] = []
    if not row["FirstName"]:
        errors.append(f"Row {row_number}: FirstName is required")
    if not row["Phone"]:
        errors.append(f"Row {row_number}: Phone is required")
    elif len(re.sub(r"\D", "", row["Phone"])) < MIN_PHONE_DIGITS:
        errors.append(f"Row {row_number}: Phone number appears to be invalid")
    if len(row["Notes"]) > MAX_SHEET_NOTES:
        errors.append(f"Row {row_number}: Notes field is too long (max {MAX_SHEET_NOTES} characters)")
    return errors


def parse(path: Path) -> ContactSheetResult:
    dataframe = _read_frame(path)
    if dataframe.empty:
        raise ContactSheetError("EMPTY_FILE", "The uploaded file is empty or contains no data")

    columns = [str(col) for col in dataframe.columns]
    mapping = _column_map(columns)
    missing = [column for column in REQUIRED_COLUMNS if column not in mapping]
    if missing:
        raise ContactSheetError(
            "MISSING_COLUMNS",
            f"Missing required columns: {', '.join(missing)}",
            {
                "missing_columns": missing,
                "available_columns": columns,
                "required_columns": list(REQUIRED_COLUMNS),
            },
        )

    records: list[dict[str, str]] = []
    row_errors: list[str] = []
    for row_number, (_, raw) in enumerate(dataframe.iterrows(), start=1):
        row = {target: str(raw[source]).strip() for target, source in mapping.items()}
        problems = _validate_row(row, row_number)
        if problems:
            row_errors.extend(problems)
        else:
            records.append(row)

    if row_errors:
        raise ContactSheetError(
            "INVALID_DATA",
            "Some rows contain invalid data",
            {"errors": row_errors, "total_rows": len(dataframe), "valid_rows": len(records)},
        )
    return ContactSheetResult(records=records)
