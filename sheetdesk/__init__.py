"""SheetDesk: client-side controllers for a CSV spreadsheet processing service."""

__version__ = "0.1.0"
