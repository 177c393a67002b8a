"""Dashboard state and the command/event surface the UI talks to.

One ``DashboardSession`` holds everything a dashboard needs between user
actions: the loaded rows, the last processed batch and the bucket filter.
Rendering code issues commands (``on_data_loaded``, ``on_process_requested``,
``on_filter_changed``) and may subscribe to the events they emit.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
from pydantic import ValidationError

from expiry.errors import EmptyInputError, MissingColumnError, PipelineError
from expiry.filters import FilterSortController, TableFilters, apply_search, normalize_filters
from expiry.metrics_summary import compute_summary
from expiry.pipeline import (
    ProcessedRecord,
    RawRow,
    default_display_column,
    process_rows,
    records_to_frame,
    row_columns,
)
from expiry.schemas import ProcessRequest, TableFiltersModel
from expiry.settings import Settings


logger = logging.getLogger(__name__)

EVENT_DATA_LOADED = "data_loaded"
EVENT_RECORDS_PROCESSED = "records_processed"
EVENT_PROCESSING_FAILED = "processing_failed"
EVENT_FILTER_CHANGED = "filter_changed"

EVENTS = (EVENT_DATA_LOADED, EVENT_RECORDS_PROCESSED, EVENT_PROCESSING_FAILED, EVENT_FILTER_CHANGED)


@dataclass(frozen=True)
class DashboardEvent:
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Outcome:
    ok: bool
    records: Tuple[ProcessedRecord, ...] = ()
    error: Optional[PipelineError] = None

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error is not None else None


@dataclass(frozen=True)
class _Batch:
    records: Tuple[ProcessedRecord, ...]
    reference_date: datetime
    date_column: str
    display_column: str
    summary: Dict[str, Any]


Listener = Callable[[DashboardEvent], None]


class DashboardSession:
    def __init__(self, settings: Optional[Settings] = None, clock: Callable[[], datetime] = datetime.now) -> None:
        self.settings = settings or Settings()
        self.filters = FilterSortController()
        self._clock = clock
        self._rows: Tuple[RawRow, ...] = ()
        self._columns: List[str] = []
        self._source_name: Optional[str] = None
        self._batch: Optional[_Batch] = None
        self._run_lock = threading.Lock()
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    # ---------- state ----------
    @property
    def rows(self) -> Tuple[RawRow, ...]:
        return self._rows

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    @property
    def source_name(self) -> Optional[str]:
        return self._source_name

    @property
    def records(self) -> Tuple[ProcessedRecord, ...]:
        batch = self._batch
        return batch.records if batch is not None else ()

    @property
    def reference_date(self) -> Optional[datetime]:
        batch = self._batch
        return batch.reference_date if batch is not None else None

    @property
    def display_column(self) -> Optional[str]:
        batch = self._batch
        return batch.display_column if batch is not None else None

    def summary(self) -> Dict[str, Any]:
        batch = self._batch
        if batch is None:
            return compute_summary((), None, chart_height=self.settings.chart_height)
        return batch.summary

    # ---------- events ----------
    def subscribe(self, name: str, listener: Listener) -> Callable[[], None]:
        if name not in EVENTS:
            raise ValueError(f"Unknown event: {name!r}")
        self._listeners[name].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[name]:
                self._listeners[name].remove(listener)

        return unsubscribe

    def _emit(self, name: str, **payload: Any) -> None:
        event = DashboardEvent(name=name, payload=payload)
        for listener in list(self._listeners[name]):
            listener(event)

    # ---------- commands ----------
    def on_data_loaded(self, rows: Sequence[RawRow], source_name: Optional[str] = None) -> Outcome:
        if not rows:
            error = EmptyInputError()
            logger.warning("No rows loaded from %s", source_name or "input")
            self._emit(EVENT_PROCESSING_FAILED, error=error, message=error.message)
            return Outcome(ok=False, error=error)

        with self._run_lock:
            self._rows = tuple(rows)
            self._columns = row_columns(self._rows)
            self._source_name = source_name
            self._batch = None
            self.filters.new_data_loaded()
        logger.info("Loaded %d rows with %d columns from %s", len(self._rows), len(self._columns), source_name or "input")
        self._emit(EVENT_DATA_LOADED, row_count=len(self._rows), columns=self.columns, source_name=source_name)
        return Outcome(ok=True)

    def on_process_requested(self, request: Union[ProcessRequest, Mapping[str, Any]]) -> Outcome:
        if not isinstance(request, ProcessRequest):
            try:
                request = ProcessRequest.model_validate(dict(request))
            except ValidationError:
                error = MissingColumnError(dict(request).get("date_column"), self._columns)
                self._emit(EVENT_PROCESSING_FAILED, error=error, message=error.message)
                return Outcome(ok=False, error=error)

        with self._run_lock:
            reference_date = self._clock()
            try:
                records = process_rows(
                    self._rows,
                    request.date_column,
                    request.display_column,
                    reference_date,
                    settings=self.settings,
                )
            except PipelineError as exc:
                logger.info("Processing rejected: %s", exc.message)
                failure = exc
            else:
                failure = None
                display_column = request.display_column or default_display_column(self._columns, request.date_column)
                self._batch = _Batch(
                    records=records,
                    reference_date=reference_date,
                    date_column=request.date_column,
                    display_column=display_column,
                    summary=compute_summary(records, reference_date, chart_height=self.settings.chart_height),
                )
                self.filters.new_data_loaded()

        if failure is not None:
            self._emit(EVENT_PROCESSING_FAILED, error=failure, message=failure.message)
            return Outcome(ok=False, error=failure)

        self._emit(EVENT_RECORDS_PROCESSED, record_count=len(records), summary=self.summary())
        return Outcome(ok=True, records=records)

    def on_filter_changed(self, bucket: str) -> Optional[str]:
        active = self.filters.select_bucket(bucket)
        self._emit(EVENT_FILTER_CHANGED, active_filter=active)
        return active

    def clear_filter(self) -> None:
        self.filters.clear()
        self._emit(EVENT_FILTER_CHANGED, active_filter=None)

    # ---------- views ----------
    def visible_records(self, search: str = "") -> List[ProcessedRecord]:
        return apply_search(self.filters.view(self.records), search)

    def table(self, filters: Union[TableFiltersModel, Mapping[str, Any], None] = None) -> Dict[str, Any]:
        raw = filters.model_dump() if isinstance(filters, TableFiltersModel) else dict(filters or {})
        f: TableFilters = normalize_filters(raw, default_max_rows=self.settings.max_table_rows)
        visible = self.visible_records(f.search)
        shown = visible[: f.max_rows]
        frame = records_to_frame(shown, self.display_column or "Contract")
        return {
            "active_filter": self.filters.active_filter,
            "search": f.search,
            "total_visible": len(visible),
            "truncated": len(visible) > len(shown),
            "rows": frame.to_dict(orient="records"),
        }

    def export_frame(self) -> pd.DataFrame:
        return records_to_frame(self.visible_records(), self.display_column or "Contract", include_source=True)
