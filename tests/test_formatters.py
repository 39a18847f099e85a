import json

import pytest

from psychconnect.formatters import (
    NOT_PROVIDED,
    build_detail_rows,
    display_value,
    format_list,
    format_timestamp,
    normalize_array,
    preview_text,
)


class TestNormalizeArray:
    def test_missing_value_is_empty(self):
        assert normalize_array(None) == []

    @pytest.mark.parametrize("value", [["a", "b", "c"], [], ["Other:"], ["  padded  "]])
    def test_lists_pass_through_unchanged(self, value):
        assert normalize_array(value) == value

    def test_normalizing_twice_changes_nothing(self):
        once = normalize_array('["Weekday mornings", "Weekend afternoons"]')
        assert normalize_array(once) == once

    def test_json_array_text_is_parsed(self):
        assert normalize_array('["a", "b", "c"]') == ["a", "b", "c"]
        assert normalize_array('["a","b"]') == ["a", "b"]
        assert normalize_array("[]") == []

    def test_plain_text_becomes_single_item(self):
        assert normalize_array("single value") == ["single value"]
        assert normalize_array("  trimmed  ") == ["trimmed"]

    @pytest.mark.parametrize("value", ["", "   ", "\n\t"])
    def test_blank_text_is_empty(self, value):
        assert normalize_array(value) == []

    def test_invalid_json_is_kept_as_text(self):
        assert normalize_array("{ invalid json }") == ["{ invalid json }"]

    def test_json_that_is_not_a_list_is_kept_as_text(self):
        assert normalize_array('{"a": 1}') == ['{"a": 1}']
        assert normalize_array("42") == ["42"]
        assert normalize_array('"quoted"') == ['"quoted"']

    def test_tuples_become_lists(self):
        assert normalize_array(("a", "b")) == ["a", "b"]

    @pytest.mark.parametrize("value", [42, 3.5, {"a": 1}, True, object()])
    def test_other_types_are_empty(self, value):
        assert normalize_array(value) == []


class TestFormatList:
    @pytest.mark.parametrize("value", [None, [], "", "   ", "[]", " [] "])
    def test_empty_shapes_render_placeholder(self, value):
        assert format_list(value) == NOT_PROVIDED == "Not provided"

    def test_list_is_joined_in_order(self):
        assert format_list(["a", "b", "c"]) == "a, b, c"
        assert format_list(["single"]) == "single"
        assert format_list(["b", "a", "b"]) == "b, a, b"

    def test_json_array_text_is_joined(self):
        assert format_list('["a", "b", "c"]') == "a, b, c"

    def test_plain_text_is_returned_stripped(self):
        assert format_list("plain string") == "plain string"
        assert format_list("  trimmed  ") == "trimmed"

    def test_invalid_or_non_list_json_is_returned_as_is(self):
        assert format_list("{ invalid }") == "{ invalid }"
        assert format_list(' {"a": 1} ') == '{"a": 1}'

    def test_other_types_render_placeholder(self):
        assert format_list(12) == NOT_PROVIDED

    @pytest.mark.parametrize(
        "values",
        [["a", "b", "c"], [], ["Weekday mornings"], ["Other:", "Long-term support"]],
    )
    def test_serialized_lists_format_like_native_lists(self, values):
        assert format_list(normalize_array(json.dumps(values))) == format_list(values)

    def test_mixed_json_values_render_like_the_web_dashboard(self):
        assert format_list('[true, false, null, 2, 2.0, 2.5]') == "true, false, , 2, 2, 2.5"
        assert format_list('[["a", "b"], "c"]') == "a,b, c"


def test_deeply_nested_brackets_never_raise():
    nested = "[" * 100000
    assert normalize_array(nested) == [nested]
    assert format_list(nested) == nested


def test_display_value_uses_placeholder_for_blanks():
    assert display_value(None) == NOT_PROVIDED
    assert display_value("  ") == NOT_PROVIDED
    assert display_value(" virtual ") == "virtual"


def test_preview_text_truncates_long_text():
    assert preview_text(None) == "No details provided."
    assert preview_text("short") == "short"
    long_text = "x" * 150
    assert preview_text(long_text) == "x" * 100 + "…"
    assert preview_text("y" * 100) == "y" * 100


def test_format_timestamp():
    assert format_timestamp(None) == "N/A"
    assert format_timestamp("2025-01-15T10:05:00+00:00") == "Jan 15, 2025 10:05 AM"
    assert format_timestamp("2025-01-15", with_time=False) == "Jan 15, 2025"
    assert format_timestamp("yesterday") == "yesterday"


def test_detail_rows_format_any_stored_shape():
    rows = build_detail_rows(
        {
            "patient_name": "Jamie",
            "patient_email": "jamie@example.com",
            "preferred_times": '["Weekday mornings", "Weekday evenings"]',
            "hoping_to_work_on": "Not sure yet",
            "other_work_on": None,
            "spoken_before": "prefer-not-to-say",
        }
    )
    values = {row["label"]: row["value"] for row in rows}

    assert values["Preferred Times"] == "Weekday mornings, Weekday evenings"
    assert values["What are you hoping to work on?"] == "Not sure yet"
    assert values["Other (if provided)"] == NOT_PROVIDED
    assert values["Preferred Appointment Type"] == NOT_PROVIDED
    assert "Message" not in values


def test_detail_rows_include_legacy_fields_when_present():
    rows = build_detail_rows({"preferred_date": "2024-06-01", "preferred_time": "3pm", "message": "Hello"})
    values = {row["label"]: row["value"] for row in rows}

    assert values["Preferred Date"] == "Jun 01, 2024"
    assert values["Preferred Time"] == "3pm"
    assert values["Message"] == "Hello"
