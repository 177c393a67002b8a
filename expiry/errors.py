from __future__ import annotations

from typing import Iterable, List, Optional


ACCEPTED_FORMATS_HINT = "Please use DD-MM-YYYY, DD/MM/YYYY, or YYYY-MM-DD format."


class PipelineError(Exception):
    """Base class for failures that reject a whole processing run."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class EmptyInputError(PipelineError):
    def __init__(self, message: str = "The uploaded sheet has no data rows.") -> None:
        super().__init__(message)


class MissingColumnError(PipelineError):
    def __init__(self, column: Optional[str], available: Iterable[str] = ()) -> None:
        self.column = column
        self.available: List[str] = list(available)
        super().__init__(f"Column '{column}' was not found. Available columns: {', '.join(self.available) or 'none'}.")


class DateParseError(PipelineError):
    """A single cell could not be read as a date; carries the 1-based row index."""

    def __init__(self, row_index: int, raw_value: object) -> None:
        self.row_index = row_index
        self.raw_value = raw_value
        super().__init__(f"Invalid date in row {row_index}: {raw_value}. {ACCEPTED_FORMATS_HINT}")


class WorkbookReadError(PipelineError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Error reading Excel file: {detail}")


class UnsupportedFileError(PipelineError):
    def __init__(self, filename: Optional[str]) -> None:
        self.filename = filename
        super().__init__("Please upload a valid Excel file (.xlsx or .xls)")
