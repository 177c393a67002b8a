"""
Unit tests for the parse-and-classify pipeline.
"""
import copy
from datetime import date, datetime

import pytest

from expiry.errors import DateParseError, EmptyInputError, MissingColumnError
from expiry.pipeline import (
    ProcessedRecord,
    default_display_column,
    process_rows,
    records_to_frame,
    row_columns,
)
from expiry.settings import Settings


@pytest.mark.unit
class TestProcessRows:
    """Tests for a successful run"""

    def test_end_to_end_example(self, sample_rows, reference_date):
        records = process_rows(sample_rows, "Expiry", "Contract", reference_date)

        assert [r.days_left for r in records] == [14, 152, -365, -730]
        assert [r.bucket for r in records] == ["0-90 days", "91-180 days", "Expired", "Expired"]
        assert [r.priority for r in records] == ["urgent", "medium", "expired", "expired"]

    def test_records_keep_input_order(self, sample_rows, reference_date):
        records = process_rows(sample_rows, "Expiry", "Contract", reference_date)

        assert [r.sequence_number for r in records] == [1, 2, 3, 4]
        assert [r.display_value for r in records] == ["Acme Hosting", "Beta Licences", "Gamma Lease", "Delta Support"]

    def test_rendered_expiry_dates(self, sample_rows, reference_date):
        records = process_rows(sample_rows, "Expiry", "Contract", reference_date)

        assert records[0].expiry_date == "1/15/2024"
        assert records[3].expiry_date == "1/1/2022"
        assert records[0].expiry_on == date(2024, 1, 15)

    def test_custom_date_format(self, sample_rows, reference_date):
        records = process_rows(
            sample_rows, "Expiry", "Contract", reference_date, settings=Settings(expiry_date_format="%Y-%m-%d")
        )
        assert records[1].expiry_date == "2024-06-01"

    def test_same_inputs_give_identical_records(self, sample_rows, reference_date):
        first = process_rows(sample_rows, "Expiry", "Contract", reference_date)
        second = process_rows(sample_rows, "Expiry", "Contract", reference_date)

        assert first == second

    def test_rows_are_not_mutated(self, sample_rows, reference_date):
        before = copy.deepcopy(sample_rows)
        process_rows(sample_rows, "Expiry", "Contract", reference_date)
        assert sample_rows == before

    def test_records_are_immutable(self, sample_rows, reference_date):
        record = process_rows(sample_rows, "Expiry", "Contract", reference_date)[0]
        with pytest.raises(AttributeError):
            record.days_left = 0  # type: ignore[misc]

    def test_source_row_is_kept(self, sample_rows, reference_date):
        records = process_rows(sample_rows, "Expiry", "Contract", reference_date)
        assert records[0].source == sample_rows[0]

    def test_blank_display_values_use_placeholder(self, reference_date):
        rows = [
            {"Contract": "", "Expiry": "2024-02-01"},
            {"Expiry": "2024-02-02", "Contract": None},
            {"Expiry": "2024-02-03"},
            {"Contract": 0, "Expiry": "2024-02-04"},
        ]
        records = process_rows(rows, "Expiry", "Contract", reference_date)
        assert [r.display_value for r in records] == ["N/A", "N/A", "N/A", 0]

    def test_display_column_defaults_to_first_other_column(self, reference_date):
        rows = [{"Expiry": "2024-02-01", "Vendor": "Acme", "Notes": "x"}]
        records = process_rows(rows, "Expiry", None, reference_date)
        assert records[0].display_value == "Acme"

    def test_reference_time_of_day_does_not_shift_days(self, sample_rows):
        records = process_rows(sample_rows, "Expiry", "Contract", datetime(2024, 1, 1, 17, 45))
        assert [r.days_left for r in records] == [14, 152, -365, -730]


@pytest.mark.unit
class TestProcessRowsFailures:
    """Tests for batches that must be rejected"""

    def test_first_bad_row_rejects_batch(self, sample_rows, reference_date):
        rows = sample_rows[:2] + [{"Contract": "Broken", "Expiry": "sometime soon"}] + sample_rows[2:]

        with pytest.raises(DateParseError) as exc_info:
            process_rows(rows, "Expiry", "Contract", reference_date)

        assert exc_info.value.row_index == 3
        assert exc_info.value.raw_value == "sometime soon"
        assert "row 3" in str(exc_info.value)
        assert "DD-MM-YYYY" in str(exc_info.value)

    def test_missing_date_cell_rejects_batch(self, reference_date):
        rows = [{"Contract": "A", "Expiry": "2024-02-01"}, {"Contract": "B"}]

        with pytest.raises(DateParseError) as exc_info:
            process_rows(rows, "Expiry", "Contract", reference_date)

        assert exc_info.value.row_index == 2
        assert exc_info.value.raw_value is None

    def test_empty_input(self, reference_date):
        with pytest.raises(EmptyInputError):
            process_rows([], "Expiry", "Contract", reference_date)

    def test_unknown_date_column(self, sample_rows, reference_date):
        with pytest.raises(MissingColumnError) as exc_info:
            process_rows(sample_rows, "End Date", "Contract", reference_date)

        assert exc_info.value.column == "End Date"
        assert exc_info.value.available == ["Contract", "Expiry", "Owner"]

    def test_unknown_display_column_checked_before_rows(self, reference_date):
        rows = [{"Contract": "A", "Expiry": "garbage"}]

        with pytest.raises(MissingColumnError):
            process_rows(rows, "Expiry", "Name", reference_date)


@pytest.mark.unit
class TestColumns:
    def test_row_columns_is_ordered_union(self):
        rows = [{"a": 1, "b": 2}, {"c": 3, "a": 4}]
        assert row_columns(rows) == ["a", "b", "c"]

    def test_default_display_column(self):
        assert default_display_column(["Expiry", "Vendor"], "Expiry") == "Vendor"
        assert default_display_column(["Expiry"], "Expiry") == "Expiry"


@pytest.mark.unit
class TestRecordsToFrame:
    def test_table_columns(self, sample_rows, reference_date):
        records = process_rows(sample_rows, "Expiry", "Contract", reference_date)
        df = records_to_frame(records, "Contract")

        assert list(df.columns) == ["#", "Contract", "Expiry Date", "Days Left", "Status", "Priority"]
        assert df["Days Left"].tolist() == [14, 152, -365, -730]

    def test_include_source_adds_sheet_columns(self, sample_rows, reference_date):
        records = process_rows(sample_rows, "Expiry", "Contract", reference_date)
        df = records_to_frame(records, "Contract", include_source=True)

        assert "Owner" in df.columns
        assert "Expiry" in df.columns
        assert df["Owner"].tolist() == ["Ops", "IT", "Facilities", "IT"]

    def test_empty_records(self):
        df = records_to_frame([], "Contract")
        assert df.empty
        assert "Days Left" in df.columns

    def test_record_type(self, sample_rows, reference_date):
        assert all(isinstance(r, ProcessedRecord) for r in process_rows(sample_rows, "Expiry", "Contract", reference_date))
