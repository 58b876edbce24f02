"""Export and import of job projects as portable project package files.

Import creates a new job project every time. Names that collide with
existing rows are suffixed ``"<name> (import N)"``; if anything fails once
the job project exists, it is deleted again together with everything that
was created under it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from panelcalc import __version__
from panelcalc.config import PackageImportConfig
from panelcalc.db.models import (
    Base,
    JobProjectModel,
    LocationModel,
    PackageItemModel,
    PackageModel,
)
from panelcalc.db.queries import bulk_create_package_items, delete_job_project
from panelcalc.errors import InvalidPackageError, NameCollisionError
from panelcalc.packages.schema import (
    PACKAGE_FORMAT,
    PACKAGE_VERSION,
    ItemEntry,
    JobProjectEntry,
    LocationEntry,
    PackageEntry,
    PackageFileMetadata,
    ProjectPackageFile,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


@dataclass
class ImportedPackage:
    """Outcome of a project package import."""

    job_project_id: int
    project_number: str
    packages: int = 0
    locations: int = 0
    items: int = 0
    skipped_locations: int = 0
    skipped_items: int = 0


# --- Export ---


async def export_job_project(
    session: AsyncSession,
    job_project_id: int,
    config: PackageImportConfig | None = None,
) -> ProjectPackageFile:
    """Build a project package document for one job project.

    Raises:
        LookupError: If the job project does not exist
    """
    config = config or PackageImportConfig()

    job_project = await session.get(JobProjectModel, job_project_id)
    if job_project is None:
        raise LookupError(f"Job project not found: {job_project_id}")

    packages = (
        await session.execute(
            select(PackageModel)
            .where(PackageModel.job_project_id == job_project_id)
            .order_by(PackageModel.id)
        )
    ).scalars().all()

    package_entries: list[PackageEntry] = []
    location_entries: list[LocationEntry] = []
    item_entries: list[ItemEntry] = []

    for pkg in packages:
        package_entries.append(
            PackageEntry(
                package_name=pkg.package_name,
                name=pkg.name,
                description=pkg.description,
                version=pkg.version,
                metadata=pkg.package_metadata,
            )
        )

        locations = (
            await session.execute(
                select(LocationModel)
                .where(LocationModel.package_id == pkg.id)
                .order_by(LocationModel.sort_order, LocationModel.id)
            )
        ).scalars().all()
        location_names = {loc.id: loc.name for loc in locations}
        location_entries.extend(
            LocationEntry(
                package_name=pkg.package_name,
                name=loc.name,
                export_name=loc.export_name,
                sort_order=loc.sort_order,
            )
            for loc in locations
        )

        items = (
            await session.execute(
                select(PackageItemModel)
                .where(PackageItemModel.package_id == pkg.id)
                .order_by(PackageItemModel.sort_order, PackageItemModel.id)
            )
        ).scalars().all()
        item_entries.extend(
            ItemEntry(
                package_name=pkg.package_name,
                location_name=(
                    location_names.get(item.location_id) or config.unknown_location_name
                ),
                part_number=item.part_number,
                description=item.description,
                secondary_description=item.secondary_description,
                quantity=item.quantity,
                unit=item.unit,
                unit_price=item.unit_price,
                manufacturer=item.manufacturer,
                supplier=item.supplier,
                category=item.category,
                reference_designator=item.reference_designator,
                is_spare=bool(item.is_spare),
                metadata=item.item_metadata,
                sort_order=item.sort_order,
            )
            for item in items
        )

    document = ProjectPackageFile(
        format=PACKAGE_FORMAT,
        version=PACKAGE_VERSION,
        metadata=PackageFileMetadata(
            exported_at=datetime.now(timezone.utc).isoformat(),
            source_app_version=__version__,
        ),
        job_project=JobProjectEntry(project_number=job_project.project_number),
        packages=package_entries,
        locations=location_entries,
        items=item_entries,
    )
    logger.info(
        f"Exported job project {job_project.project_number}: {len(package_entries)} packages, "
        f"{len(location_entries)} locations, {len(item_entries)} items"
    )
    return document


def dump_package(document: ProjectPackageFile) -> str:
    """Serialize a project package document to JSON text."""
    exclude = None
    if document.metadata.source_app_version is None:
        # Omitted rather than null so the output parses again
        exclude = {"metadata": {"source_app_version"}}
    return document.model_dump_json(indent=2, exclude=exclude)


def parse_package(content: str | bytes | dict[str, Any]) -> ProjectPackageFile:
    """Parse and validate a project package document.

    Raises:
        InvalidPackageError: If the content is not valid JSON or fails the schema
    """
    try:
        data = json.loads(content) if isinstance(content, (str, bytes)) else content
        return ProjectPackageFile.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise InvalidPackageError(f"Invalid project package file: {e}") from e


# --- Import ---


def _is_unique_violation(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "unique" in message or "duplicate" in message


async def _insert_with_unique_name(
    session: AsyncSession,
    entity: str,
    base_name: str,
    build: Callable[[str], ModelT],
    max_attempts: int,
) -> ModelT:
    """Insert ``build(name)``, suffixing the name until it is unique.

    Each attempt runs in a savepoint so a failed insert leaves the outer
    transaction usable.

    Raises:
        NameCollisionError: If no unique name was found within ``max_attempts``
    """
    for attempt in range(max_attempts + 1):
        name = base_name if attempt == 0 else f"{base_name} (import {attempt})"
        model = build(name)
        try:
            async with session.begin_nested():
                session.add(model)
                await session.flush()
        except IntegrityError as e:
            if not _is_unique_violation(e):
                raise
            continue

        if attempt:
            logger.info(f"Renamed imported {entity} '{base_name}' to '{name}'")
        return model

    raise NameCollisionError(entity, base_name, max_attempts)


async def _rollback_job_project(session: AsyncSession, job_project_id: int) -> None:
    try:
        await delete_job_project(session, job_project_id)
        await session.commit()
        logger.warning(f"Rolled back import of job project {job_project_id}")
    except SQLAlchemyError as e:
        await session.rollback()
        logger.warning(f"Failed to roll back job project import {job_project_id}: {e}")


async def import_job_project(
    session: AsyncSession,
    content: str | bytes | dict[str, Any],
    config: PackageImportConfig | None = None,
) -> ImportedPackage:
    """Create a new job project from a project package document.

    Returns:
        ImportedPackage with the new job project id and created counts

    Raises:
        InvalidPackageError: If the document fails validation (nothing is written)
        NameCollisionError: If a unique name could not be found
    """
    config = config or PackageImportConfig()
    document = parse_package(content)

    job_project = await _insert_with_unique_name(
        session,
        "job project",
        document.job_project.project_number,
        lambda name: JobProjectModel(project_number=name),
        config.max_name_attempts,
    )
    await session.commit()
    job_project_id = job_project.id
    outcome = ImportedPackage(
        job_project_id=job_project_id, project_number=job_project.project_number
    )

    try:
        package_ids: dict[str, int] = {}
        for entry in document.packages:
            package = await _insert_with_unique_name(
                session,
                "package",
                entry.package_name,
                lambda name, entry=entry: PackageModel(
                    job_project_id=job_project_id,
                    package_name=name,
                    name=entry.name,
                    description=entry.description,
                    version=entry.version,
                    package_metadata=entry.metadata,
                ),
                config.max_name_attempts,
            )
            package_ids[entry.package_name] = package.id
            outcome.packages += 1

        location_ids: dict[str, dict[str, int]] = {}
        for entry in document.locations:
            package_id = package_ids.get(entry.package_name)
            if package_id is None:
                logger.warning(
                    f"Package {entry.package_name} not found for location {entry.name}, skipping"
                )
                outcome.skipped_locations += 1
                continue

            location = await _insert_with_unique_name(
                session,
                "location",
                entry.name,
                lambda name, entry=entry, package_id=package_id: LocationModel(
                    package_id=package_id,
                    name=name,
                    export_name=entry.export_name,
                    sort_order=entry.sort_order,
                ),
                config.max_name_attempts,
            )
            location_ids.setdefault(entry.package_name, {})[entry.name] = location.id
            outcome.locations += 1

        items_by_package: dict[int, list[dict[str, Any]]] = {}
        for entry in document.items:
            package_id = package_ids.get(entry.package_name)
            location_id = location_ids.get(entry.package_name, {}).get(entry.location_name)
            if package_id is None or location_id is None:
                logger.warning(
                    f"Location {entry.location_name} not found in package "
                    f"{entry.package_name}, skipping item {entry.part_number}"
                )
                outcome.skipped_items += 1
                continue

            items_by_package.setdefault(package_id, []).append(
                {
                    "package_id": package_id,
                    "location_id": location_id,
                    "part_id": None,
                    "part_number": entry.part_number,
                    "description": entry.description,
                    "secondary_description": entry.secondary_description,
                    "quantity": entry.quantity,
                    "unit": entry.unit,
                    "unit_price": entry.unit_price,
                    "manufacturer": entry.manufacturer,
                    "supplier": entry.supplier,
                    "category": entry.category,
                    "reference_designator": entry.reference_designator,
                    "is_spare": entry.is_spare,
                    "item_metadata": entry.metadata,
                    "sort_order": entry.sort_order,
                }
            )

        for payloads in items_by_package.values():
            await bulk_create_package_items(session, payloads)
            outcome.items += len(payloads)

        await session.commit()
    except Exception:
        await session.rollback()
        await _rollback_job_project(session, job_project_id)
        raise

    logger.info(
        f"Imported job project '{outcome.project_number}' ({job_project_id}): "
        f"{outcome.packages} packages, {outcome.locations} locations, {outcome.items} items"
    )
    return outcome
