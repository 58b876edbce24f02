"""Database layer for PanelCalc with async SQLAlchemy."""

from panelcalc.db.connection import build_engine, get_session, init_db
from panelcalc.db.models import (
    Base,
    JobProjectModel,
    LineItemModel,
    LoadCalcProjectModel,
    LoadCalcResultModel,
    LocationModel,
    ManufacturerModel,
    PackageItemModel,
    PackageModel,
    PartElectricalModel,
    PartModel,
    VoltageTableModel,
)

__all__ = [
    "Base",
    "JobProjectModel",
    "LineItemModel",
    "LoadCalcProjectModel",
    "LoadCalcResultModel",
    "LocationModel",
    "ManufacturerModel",
    "PackageItemModel",
    "PackageModel",
    "PartElectricalModel",
    "PartModel",
    "VoltageTableModel",
    "build_engine",
    "get_session",
    "init_db",
]
