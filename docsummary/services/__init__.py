"""Services behind the API: Drive sync, extraction, analysis and processing."""

from docsummary.services.analyzer import DocumentAnalyzer
from docsummary.services.drive_sync import DriveSync
from docsummary.services.processor import DocumentProcessor

__all__ = ["DocumentAnalyzer", "DriveSync", "DocumentProcessor"]
