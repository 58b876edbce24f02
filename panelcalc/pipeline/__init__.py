"""Spreadsheet import pipeline: mapping, matching, preview and commit."""

from panelcalc.pipeline.import_session import ImportSession
from panelcalc.pipeline.templates import MappingTemplate, MappingTemplateStore
from panelcalc.pipeline.types import (
    IMPORT_FIELDS,
    REQUIRED_FIELDS,
    ImportField,
    ImportStats,
    ImportStep,
    ImportSummary,
)

__all__ = [
    "IMPORT_FIELDS",
    "REQUIRED_FIELDS",
    "ImportField",
    "ImportSession",
    "ImportStats",
    "ImportStep",
    "ImportSummary",
    "MappingTemplate",
    "MappingTemplateStore",
]
