from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ProcessRequest(BaseModel):
    date_column: str = Field(min_length=1)
    display_column: Optional[str] = None

    @field_validator("display_column")
    @classmethod
    def _blank_display_is_default(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value


class TableFiltersModel(BaseModel):
    search: str = ""
    max_rows: Optional[int] = None
