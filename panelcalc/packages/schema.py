"""Project package file format (v1).

Portable JSON document carrying a job project with all of its packages,
locations and items. Items reference parts by part number only; catalog
links are not carried across installations.

Validation is strict: numbers, booleans and strings are not coerced from
one another, and nullable fields must be present (``null`` is allowed).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

PACKAGE_FORMAT = "ats-chd-project-package"
PACKAGE_VERSION = "1"


class _StrictEntry(BaseModel):
    model_config = ConfigDict(strict=True)


class PackageFileMetadata(_StrictEntry):
    exported_at: str
    source_app_version: str | None = None  # may be omitted, never null

    @field_validator("source_app_version", mode="before")
    @classmethod
    def reject_null_version(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("source_app_version must be a string when present")
        return v


class JobProjectEntry(_StrictEntry):
    project_number: str


class PackageEntry(_StrictEntry):
    package_name: str
    name: str | None
    description: str | None
    version: str
    metadata: str | None  # JSON string


class LocationEntry(_StrictEntry):
    package_name: str
    name: str
    export_name: str | None
    sort_order: int


class ItemEntry(_StrictEntry):
    package_name: str
    location_name: str
    part_number: str
    description: str
    secondary_description: str | None
    quantity: float
    unit: str
    unit_price: float | None
    manufacturer: str | None
    supplier: str | None
    category: str | None
    reference_designator: str | None
    is_spare: bool
    metadata: str | None
    sort_order: int


class ProjectPackageFile(_StrictEntry):
    """Complete project package document."""

    format: Literal["ats-chd-project-package"]
    version: Literal["1"]
    metadata: PackageFileMetadata
    job_project: JobProjectEntry
    packages: list[PackageEntry]
    locations: list[LocationEntry]
    items: list[ItemEntry]
