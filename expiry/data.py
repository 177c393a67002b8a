"""Spreadsheet adapter: first worksheet of an uploaded workbook -> raw rows.

The core only understands rows of strings, numbers and blanks. Readers that
already turned date cells into datetimes get them converted back to serial day
counts here, so every date goes through the same parsing rules.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from expiry.dates import date_to_excel_serial, is_blank
from expiry.errors import UnsupportedFileError, WorkbookReadError
from expiry.settings import Settings


logger = logging.getLogger(__name__)

ENGINE_BY_SUFFIX = {".xlsx": "openpyxl", ".xls": "xlrd"}


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def cell_value(value: object) -> Any:
    if is_blank(value):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (datetime, date)):
        return date_to_excel_serial(value)
    # Time-only cells carry no date; keep them as text for the parser to reject.
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def rows_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Turn a sheet frame into raw rows; blank cells are left out of each row."""
    if df.empty:
        return []
    df = drop_duplicate_columns(df)
    df = df.dropna(axis=0, how="all").dropna(axis=1, how="all")
    rows: List[Dict[str, Any]] = []
    for record in df.to_dict(orient="records"):
        row: Dict[str, Any] = {}
        for key, value in record.items():
            cell = cell_value(value)
            if cell is not None:
                row[str(key)] = cell
        if row:
            rows.append(row)
    return rows


def _source_name(source: object, filename: Optional[str]) -> Optional[str]:
    if filename:
        return filename
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", None)


def load_workbook_rows(
    source: Union[str, Path, BinaryIO],
    filename: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
) -> List[Dict[str, Any]]:
    settings = settings or Settings()
    name = _source_name(source, filename)
    suffix = Path(name).suffix.lower() if name else ""
    if suffix not in settings.allowed_extensions or suffix not in ENGINE_BY_SUFFIX:
        raise UnsupportedFileError(name)

    try:
        df = pd.read_excel(source, sheet_name=0, engine=ENGINE_BY_SUFFIX[suffix])
    except Exception as exc:
        logger.exception("Reading workbook %s failed", name)
        raise WorkbookReadError(str(exc)) from exc

    rows = rows_from_frame(df)
    logger.info("Loaded %d rows from %s", len(rows), name)
    return rows
