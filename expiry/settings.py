from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


DEFAULT_EXTENSIONS: Tuple[str, ...] = (".xlsx", ".xls")


@dataclass(frozen=True)
class Settings:
    na_label: str = "N/A"
    # None renders US style M/D/YYYY without zero padding.
    expiry_date_format: Optional[str] = None
    allowed_extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    max_table_rows: int = 500
    chart_height: int = 320


def _as_extensions(values: object) -> Tuple[str, ...]:
    if not values:
        return DEFAULT_EXTENSIONS
    if isinstance(values, str):
        values = [values]
    out = []
    for v in values:  # type: ignore[union-attr]
        s = str(v).strip().lower()
        if not s:
            continue
        out.append(s if s.startswith(".") else f".{s}")
    return tuple(out) or DEFAULT_EXTENSIONS


def normalize_settings(raw: Optional[dict]) -> Settings:
    raw = raw or {}

    na_label = str(raw.get("na_label") or "N/A")

    fmt = raw.get("expiry_date_format")
    fmt = str(fmt).strip() if fmt else None

    max_rows = raw.get("max_table_rows", 500)
    try:
        max_rows = int(max_rows)
    except Exception:
        max_rows = 500
    max_rows = max(1, min(10000, max_rows))

    chart_height = raw.get("chart_height", 320)
    try:
        chart_height = int(chart_height)
    except Exception:
        chart_height = 320
    chart_height = max(120, min(1200, chart_height))

    return Settings(
        na_label=na_label,
        expiry_date_format=fmt or None,
        allowed_extensions=_as_extensions(raw.get("allowed_extensions")),
        max_table_rows=max_rows,
        chart_height=chart_height,
    )
