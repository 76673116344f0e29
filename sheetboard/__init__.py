"""Sheetboard: a terminal kiosk that shows one spreadsheet column in large type."""

__version__ = "1.0.0"
