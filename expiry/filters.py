from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from expiry.classify import BUCKET_ORDER
from expiry.pipeline import ProcessedRecord


@dataclass(frozen=True)
class TableFilters:
    search: str = ""
    max_rows: int = 500


def normalize_filters(raw: Optional[dict], *, default_max_rows: int = 500) -> TableFilters:
    raw = raw or {}
    search = (raw.get("search") or "").strip()

    max_rows = raw.get("max_rows", default_max_rows)
    try:
        max_rows = int(max_rows)
    except Exception:
        max_rows = default_max_rows
    max_rows = max(1, min(10000, max_rows))

    return TableFilters(search=search, max_rows=max_rows)


class FilterSortController:
    """Single active bucket filter plus the table ordering that goes with it.

    Unfiltered shows every record in input order. Filtering by a bucket shows
    only that bucket, soonest expiry first. Selecting the active bucket again
    switches the filter off.
    """

    def __init__(self) -> None:
        self._active: Optional[str] = None

    @property
    def active_filter(self) -> Optional[str]:
        return self._active

    @property
    def is_filtered(self) -> bool:
        return self._active is not None

    def select_bucket(self, bucket: str) -> Optional[str]:
        if bucket not in BUCKET_ORDER:
            raise ValueError(f"Unknown bucket: {bucket!r}")
        self._active = None if self._active == bucket else bucket
        return self._active

    def clear(self) -> None:
        self._active = None

    def new_data_loaded(self) -> None:
        self._active = None

    def view(self, records: Sequence[ProcessedRecord]) -> List[ProcessedRecord]:
        if self._active is None:
            return sorted(records, key=lambda r: r.sequence_number)
        matching = [r for r in records if r.bucket == self._active]
        return sorted(matching, key=lambda r: (r.days_left, r.sequence_number))


def apply_search(records: Sequence[ProcessedRecord], query: str) -> List[ProcessedRecord]:
    """Case-insensitive substring match over each row's rendered cells."""
    q = (query or "").strip().lower()
    if not q:
        return list(records)
    return [r for r in records if q in " ".join(r.rendered_cells()).lower()]
