from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from expiry.charts import bucket_bar_chart, to_vega_spec
from expiry.classify import BUCKET_COLORS, BUCKET_ORDER, PRIORITY_ORDER
from expiry.pipeline import ProcessedRecord


def _counts(values: Sequence[str], keys: Sequence[str]) -> Dict[str, int]:
    counted = pd.Series(list(values), dtype=object).value_counts()
    counted = counted.reindex(list(keys), fill_value=0)
    return {str(k): int(v) for k, v in counted.items()}


def summarize(records: Sequence[ProcessedRecord]) -> Dict[str, int]:
    """Counts per priority; all four priorities are always present."""
    return _counts([r.priority for r in records], PRIORITY_ORDER)


def histogram(records: Sequence[ProcessedRecord]) -> Dict[str, int]:
    """Counts per bucket in chart order; all four buckets are always present."""
    return _counts([r.bucket for r in records], BUCKET_ORDER)


def compute_summary(
    records: Sequence[ProcessedRecord],
    reference_date: Optional[date | datetime] = None,
    *,
    chart_height: int = 320,
) -> Dict[str, Any]:
    bucket_counts = histogram(records)
    return {
        "total": len(records),
        "reference_date": reference_date.isoformat() if reference_date is not None else None,
        "counts": summarize(records),
        "histogram": bucket_counts,
        "colors": {b: BUCKET_COLORS[b] for b in BUCKET_ORDER},
        "charts": {"bucket_bar": to_vega_spec(bucket_bar_chart(bucket_counts, height=chart_height))},
    }
