"""Core (UI-agnostic) contract expiry logic.

This package contains:
- spreadsheet adapter (XLSX/XLS -> raw rows)
- date normalization and expiry classification
- the processing pipeline and its session/command surface
- summary payloads and table filtering
- chart helpers (Altair -> Vega-Lite spec dict)
"""
