"""PanelCalc: electrical load calculation for panel design."""

__version__ = "0.1.0"
