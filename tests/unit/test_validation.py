"""Unit tests for line item validation."""

from __future__ import annotations

from panelcalc.electrical.validation import has_errors, split_issues, validate_line_items
from panelcalc.models import IssueSeverity, LineItem


def test_valid_items_produce_no_issues():
    items = [
        LineItem(id=1, part_id=1, qty=1, phase_assignment="L1"),
        LineItem(id=2, manual_part_number="M-1", wattage_override=10, phase_assignment="L2"),
    ]
    assert validate_line_items(items, "480VAC_3PH") == []


def test_zero_quantity_is_an_error():
    issues = validate_line_items([LineItem(id=7, part_id=1, qty=0)], "DC")

    assert len(issues) == 1
    assert issues[0].field == "qty"
    assert issues[0].severity == IssueSeverity.ERROR
    assert issues[0].line_item_id == 7
    assert has_errors(issues)


def test_utilization_out_of_range_is_an_error():
    issues = validate_line_items(
        [LineItem(part_id=1, utilization_pct=1.5), LineItem(part_id=1, utilization_pct=-0.1)],
        "DC",
    )

    assert [i.field for i in issues] == ["utilization_pct", "utilization_pct"]
    assert all(i.is_error for i in issues)


def test_missing_phase_on_three_phase_table_is_a_warning():
    issues = validate_line_items([LineItem(part_id=1)], "480VAC_3PH")

    assert len(issues) == 1
    assert issues[0].field == "phase_assignment"
    assert issues[0].severity == IssueSeverity.WARNING
    assert not has_errors(issues)


def test_missing_phase_ignored_on_single_phase_table():
    assert validate_line_items([LineItem(part_id=1)], "120VAC_1PH") == []


def test_unassigned_phase_marker_counts_as_assigned():
    assert validate_line_items([LineItem(part_id=1, phase_assignment="UNK")], "480VAC_3PH") == []


def test_manual_entry_without_wattage_is_a_warning():
    issues = validate_line_items(
        [
            LineItem(manual_part_number="NO-WATTS"),
            LineItem(manual_part_number="ZERO-WATTS", wattage_override=0),
        ],
        "DC",
    )

    assert [i.field for i in issues] == ["wattage_override", "wattage_override"]
    assert all(i.severity == IssueSeverity.WARNING for i in issues)
    assert "NO-WATTS" in issues[0].message


def test_issues_follow_item_then_rule_order():
    items = [
        LineItem(id=1, qty=0, utilization_pct=2, manual_part_number="A"),
        LineItem(id=2, part_id=3),
    ]

    issues = validate_line_items(items, "230VAC_3PH")

    assert [(i.line_item_id, i.field) for i in issues] == [
        (1, "qty"),
        (1, "utilization_pct"),
        (1, "phase_assignment"),
        (1, "wattage_override"),
        (2, "phase_assignment"),
    ]
    errors, warnings = split_issues(issues)
    assert len(errors) == 2
    assert len(warnings) == 3


def test_row_label_falls_back_to_description_then_id():
    by_description = validate_line_items([LineItem(id=4, description="Fan", qty=0, part_id=1)], "DC")
    by_id = validate_line_items([LineItem(id=9, qty=0, part_id=1)], "DC")

    assert "(row: Fan)" in by_description[0].message
    assert "(row: 9)" in by_id[0].message
