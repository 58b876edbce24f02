"""Portable project package export/import."""

from panelcalc.packages.io import (
    ImportedPackage,
    dump_package,
    export_job_project,
    import_job_project,
    parse_package,
)
from panelcalc.packages.schema import PACKAGE_FORMAT, PACKAGE_VERSION, ProjectPackageFile

__all__ = [
    "PACKAGE_FORMAT",
    "PACKAGE_VERSION",
    "ImportedPackage",
    "ProjectPackageFile",
    "dump_package",
    "export_job_project",
    "import_job_project",
    "parse_package",
]
