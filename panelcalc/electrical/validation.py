"""Line item validation run before a table calculation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from panelcalc.electrical.aggregation import is_three_phase
from panelcalc.models import IssueSeverity, LineItem, ValidationIssue


def validate_line_items(
    line_items: Iterable[LineItem], voltage_type: str
) -> list[ValidationIssue]:
    """Validate line items for a voltage table.

    Returns issues in item order; an empty list means the table is valid.
    Errors block a calculation from being presented as authoritative,
    warnings never do.
    """
    issues: list[ValidationIssue] = []
    three_phase = is_three_phase(voltage_type)

    def issue(item: LineItem, field: str, message: str, severity: IssueSeverity) -> None:
        issues.append(
            ValidationIssue(
                line_item_id=item.id,
                field=field,
                message=f"{message} (row: {item.label})",
                severity=severity,
            )
        )

    for item in line_items:
        if item.qty <= 0:
            issue(item, "qty", "Quantity must be greater than 0", IssueSeverity.ERROR)

        if item.utilization_pct < 0 or item.utilization_pct > 1:
            issue(
                item,
                "utilization_pct",
                "Utilization must be between 0% and 100%",
                IssueSeverity.ERROR,
            )

        if three_phase and item.phase_assignment is None:
            issue(
                item,
                "phase_assignment",
                "Phase assignment required for 3-phase table",
                IssueSeverity.WARNING,
            )

        # Part specs are only known at calculation time; overrides are checked here
        has_override_wattage = (
            item.wattage_override is not None and item.wattage_override > 0
        )
        if item.part_id is None and not has_override_wattage:
            issue(
                item,
                "wattage_override",
                "Manual entry has no wattage specified",
                IssueSeverity.WARNING,
            )

    return issues


def has_errors(issues: Sequence[ValidationIssue]) -> bool:
    """Check if issues contain any errors (not just warnings)."""
    return any(i.is_error for i in issues)


def split_issues(
    issues: Sequence[ValidationIssue],
) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
    """Return ``(errors, warnings)``."""
    errors = [i for i in issues if i.is_error]
    warnings = [i for i in issues if not i.is_error]
    return errors, warnings
