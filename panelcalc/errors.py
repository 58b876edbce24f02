"""Exception types raised by PanelCalc operations.

Validation problems on line items are reported as ``ValidationIssue`` data,
not exceptions. The classes here cover failures that must reach the caller
as a discrete, displayable message.
"""

from __future__ import annotations


class PanelCalcError(Exception):
    """Base class for PanelCalc failures."""
    pass


class ImportCommitError(PanelCalcError):
    """Raised when an import session cannot be committed to a voltage table."""
    pass


class InvalidPackageError(PanelCalcError, ValueError):
    """Raised when a project package document fails schema validation."""
    pass


class NameCollisionError(PanelCalcError):
    """Raised when no unique name could be found within the attempt budget."""

    def __init__(self, entity: str, name: str, attempts: int) -> None:
        self.entity = entity
        self.name = name
        self.attempts = attempts
        super().__init__(
            f"Could not create unique {entity} name for {name!r} after {attempts} attempts"
        )


class ImportStageError(PanelCalcError):
    """Raised when an import session is asked to skip a stage."""
    pass
