"""Spreadsheet document store adapters."""

from app.adapters.sheets.base import AbstractDocumentStore, PendingWrite
from app.adapters.sheets.google_sheets import GoogleSheetsDocumentStore

__all__ = [
    "AbstractDocumentStore",
    "GoogleSheetsDocumentStore",
    "PendingWrite",
]
