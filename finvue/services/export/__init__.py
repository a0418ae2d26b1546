"""Spreadsheet export."""

from finvue.services.export.excel import SpreadsheetExporter

__all__ = ["SpreadsheetExporter"]
