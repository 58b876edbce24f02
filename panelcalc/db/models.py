"""SQLAlchemy async database models for PanelCalc.

Covers the parts catalog, load calculation projects (voltage tables, line
items, cached results) and the job project / package / location / item
hierarchy used by project packages.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# --- Parts catalog ---


class ManufacturerModel(Base):
    """Part manufacturer."""

    __tablename__ = "manufacturers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class PartModel(Base):
    """Catalog part keyed by manufacturer + part number."""

    __tablename__ = "parts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    manufacturer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("manufacturers.id", ondelete="SET NULL"), index=True
    )
    part_number: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    manufacturer: Mapped[ManufacturerModel | None] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("manufacturer_id", "part_number", name="uq_parts_manufacturer_part"),
    )


class PartElectricalModel(Base):
    """Electrical rating of a part for one voltage type."""

    __tablename__ = "part_electrical"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    part_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("parts.id", ondelete="CASCADE"), nullable=False
    )
    voltage_type: Mapped[str] = mapped_column(Text, nullable=False)
    amperage: Mapped[float | None] = mapped_column(Float)
    wattage: Mapped[float | None] = mapped_column(Float)
    heat_dissipation_btu: Mapped[float | None] = mapped_column(Float)
    default_utilization: Mapped[float | None] = mapped_column(Float)

    __table_args__ = (
        # At most one variant per (part, voltage type)
        UniqueConstraint("part_id", "voltage_type", name="uq_part_electrical_variant"),
    )


# --- Job projects / packages ---


class JobProjectModel(Base):
    """Top-level job project grouping BOM packages."""

    __tablename__ = "bom_job_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    packages: Mapped[list[PackageModel]] = relationship(
        back_populates="job_project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PackageModel(Base):
    """BOM package within a job project."""

    __tablename__ = "bom_packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("bom_job_projects.id", ondelete="CASCADE"), nullable=False
    )
    package_name: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    version: Mapped[str] = mapped_column(Text, nullable=False, default="1")
    package_metadata: Mapped[str | None] = mapped_column("metadata", Text)  # JSON string
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    job_project: Mapped[JobProjectModel] = relationship(back_populates="packages")

    __table_args__ = (
        UniqueConstraint("job_project_id", "package_name", name="uq_bom_packages_name"),
    )


class LocationModel(Base):
    """Enclosure/location inside a package."""

    __tablename__ = "bom_locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    package_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("bom_packages.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    export_name: Mapped[str | None] = mapped_column(Text)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("package_id", "name", name="uq_bom_locations_name"),
    )


class PackageItemModel(Base):
    """BOM item within a package location."""

    __tablename__ = "bom_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    package_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("bom_packages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    location_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("bom_locations.id", ondelete="CASCADE"), index=True
    )
    part_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("parts.id", ondelete="SET NULL")
    )
    part_number: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    secondary_description: Mapped[str | None] = mapped_column(Text)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1)
    unit: Mapped[str] = mapped_column(Text, nullable=False, default="EA")
    unit_price: Mapped[float | None] = mapped_column(Float)
    manufacturer: Mapped[str | None] = mapped_column(Text)
    supplier: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(Text)
    reference_designator: Mapped[str | None] = mapped_column(Text)
    is_spare: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    item_metadata: Mapped[str | None] = mapped_column("metadata", Text)  # JSON string
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# --- Load calculation ---


class LoadCalcProjectModel(Base):
    """Load calculation project, optionally linked to a BOM package."""

    __tablename__ = "load_calc_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    bom_package_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("bom_packages.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class VoltageTableModel(Base):
    """Voltage table grouping line items of one voltage type."""

    __tablename__ = "load_calc_voltage_tables"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("load_calc_projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    location_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("bom_locations.id", ondelete="SET NULL")
    )
    voltage_type: Mapped[str] = mapped_column(Text, nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class LineItemModel(Base):
    """Line item in a voltage table."""

    __tablename__ = "load_calc_line_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voltage_table_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("load_calc_voltage_tables.id", ondelete="CASCADE"),
        nullable=False,
    )
    part_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("parts.id", ondelete="SET NULL")
    )
    manual_part_number: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    qty: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    utilization_pct: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    amperage_override: Mapped[float | None] = mapped_column(Float)
    wattage_override: Mapped[float | None] = mapped_column(Float)
    heat_dissipation_override: Mapped[float | None] = mapped_column(Float)
    power_group: Mapped[str | None] = mapped_column(Text)
    phase_assignment: Mapped[str | None] = mapped_column(Text)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "phase_assignment IS NULL OR phase_assignment IN ('L1', 'L2', 'L3', 'N', 'UNK')",
            name="check_phase_assignment",
        ),
        Index("idx_line_items_table_order", "voltage_table_id", "sort_order"),
    )


class LoadCalcResultModel(Base):
    """Cached calculation totals for a voltage table."""

    __tablename__ = "load_calc_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("load_calc_projects.id", ondelete="CASCADE"), nullable=False
    )
    voltage_table_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("load_calc_voltage_tables.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    total_watts: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_amperes: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_btu: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
