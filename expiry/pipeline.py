from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from expiry.classify import classify
from expiry.dates import days_until, format_expiry_date, is_blank, parse_date
from expiry.errors import DateParseError, EmptyInputError, MissingColumnError
from expiry.settings import Settings


logger = logging.getLogger(__name__)

RawRow = Mapping[str, Any]


@dataclass(frozen=True)
class ProcessedRecord:
    sequence_number: int
    display_value: Any
    expiry_date: str
    days_left: int
    bucket: str
    priority: str
    expiry_on: date
    source: Dict[str, Any] = field(default_factory=dict, hash=False, repr=False)

    def rendered_cells(self) -> List[str]:
        """Text of the table cells, as shown to the user."""
        return [str(self.display_value), self.expiry_date, str(self.days_left), self.bucket]


def row_columns(rows: Sequence[RawRow]) -> List[str]:
    """Ordered union of the keys seen across all rows."""
    seen: Dict[str, None] = {}
    for row in rows:
        for key in row.keys():
            seen.setdefault(str(key), None)
    return list(seen)


def default_display_column(columns: Sequence[str], date_column: str) -> str:
    for col in columns:
        if col != date_column:
            return col
    return date_column


def _display_value(row: RawRow, column: str, na_label: str) -> Any:
    value = row.get(column)
    if is_blank(value):
        return na_label
    return value


def process_rows(
    rows: Sequence[RawRow],
    date_column: str,
    display_column: Optional[str],
    reference_date: date | datetime,
    *,
    settings: Optional[Settings] = None,
) -> Tuple[ProcessedRecord, ...]:
    """Parse and classify every row, or raise on the first row that cannot be read.

    ``reference_date`` is the single "now" every row is measured against, so
    all records of a run agree on their buckets.
    """
    settings = settings or Settings()
    if not rows:
        raise EmptyInputError()

    columns = row_columns(rows)
    if date_column not in columns:
        raise MissingColumnError(date_column, columns)
    if display_column is None:
        display_column = default_display_column(columns, date_column)
    elif display_column not in columns:
        raise MissingColumnError(display_column, columns)

    logger.info(
        "Processing %d rows (date column=%r, display column=%r, reference=%s)",
        len(rows),
        date_column,
        display_column,
        reference_date,
    )

    records: List[ProcessedRecord] = []
    for index, row in enumerate(rows):
        raw_value = row.get(date_column)
        expiry = parse_date(raw_value)
        if expiry is None:
            logger.warning("Rejecting batch: row %d has unreadable date %r", index + 1, raw_value)
            raise DateParseError(index + 1, raw_value)

        days_left = days_until(expiry, reference_date)
        bucket, priority = classify(days_left)
        records.append(
            ProcessedRecord(
                sequence_number=index + 1,
                display_value=_display_value(row, display_column, settings.na_label),
                expiry_date=format_expiry_date(expiry, settings.expiry_date_format),
                days_left=days_left,
                bucket=bucket,
                priority=priority,
                expiry_on=expiry,
                source=dict(row),
            )
        )

    logger.info("Processed %d records", len(records))
    return tuple(records)


def records_to_frame(
    records: Sequence[ProcessedRecord],
    display_label: str = "Contract",
    *,
    include_source: bool = False,
) -> pd.DataFrame:
    columns = ["#", display_label, "Expiry Date", "Days Left", "Status"]
    if not records:
        return pd.DataFrame(columns=columns + ["Priority"])
    df = pd.DataFrame(
        [
            {
                "#": r.sequence_number,
                display_label: r.display_value,
                "Expiry Date": r.expiry_date,
                "Days Left": r.days_left,
                "Status": r.bucket,
                "Priority": r.priority,
            }
            for r in records
        ]
    )
    if include_source:
        source = pd.DataFrame([r.source for r in records])
        source = source[[c for c in source.columns if c not in df.columns]]
        df = pd.concat([df.reset_index(drop=True), source.reset_index(drop=True)], axis=1)
    return df
