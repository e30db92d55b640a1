"""
Document Processor — the cache-aware pipeline behind every trigger.

For a local file:
  1. If ``<file>.json`` exists and parses, load it and stop (cached).
  2. Otherwise extract text, analyze it, keep the record in memory,
     write the sidecar, and mirror the sidecar to Drive when a folder
     is configured.

URLs skip the sidecar cache entirely and are re-fetched on every call.

There is no locking around the result map or the sidecar files; two
overlapping runs for the same name simply race and the last write wins.
"""

import json
import logging
import os
from pathlib import Path

from docsummary.models import DocumentRecord, ProcessResult
from docsummary.services.analyzer import DocumentAnalyzer
from docsummary.services.extraction import extract_pdf_text, extract_url_text

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = (".pdf",)
SIDECAR_SUFFIX = ".json"


def sidecar_path(file_path) -> Path:
    file_path = Path(file_path)
    return file_path.with_name(file_path.name + SIDECAR_SUFFIX)


def is_source_file(path) -> bool:
    name = os.path.basename(str(path))
    return not name.startswith(".") and name.lower().endswith(SOURCE_EXTENSIONS)


class DocumentProcessor:
    """Runs extraction and analysis with the sidecar cache in front."""

    def __init__(self, results, data_dir, analyzer=None, drive=None, folder_id="",
                 replace_artifacts=False, url_timeout=None,
                 pdf_extractor=extract_pdf_text, url_extractor=extract_url_text):
        self.results = results
        self.data_dir = Path(data_dir)
        self.analyzer = analyzer or DocumentAnalyzer()
        self.drive = drive
        self.folder_id = folder_id
        self.replace_artifacts = replace_artifacts
        self.url_timeout = url_timeout
        self.pdf_extractor = pdf_extractor
        self.url_extractor = url_extractor

    @property
    def remote_enabled(self):
        return bool(self.drive is not None and self.folder_id)

    # ── Files ─────────────────────────────────────────────────────────

    def _load_sidecar(self, cache_path: Path) -> DocumentRecord | None:
        if not cache_path.exists():
            return None
        try:
            data = json.loads(cache_path.read_text(encoding="utf-8"))
            return DocumentRecord.from_dict(data)
        except (OSError, ValueError):
            logger.exception("Error reading cache %s, re-processing", cache_path.name)
            return None

    def process_file(self, file_path) -> ProcessResult:
        file_path = Path(file_path)
        name = file_path.name
        cache_path = sidecar_path(file_path)

        cached = self._load_sidecar(cache_path)
        if cached is not None:
            self.results[name] = cached
            logger.info("Loaded analysis from cache for %s", name)
            return ProcessResult(name=name, status="cached", record=cached)

        logger.info("Processing %s...", name)
        try:
            text = self.pdf_extractor(file_path)
        except Exception as e:
            logger.exception("Error processing %s", name)
            return ProcessResult(name=name, status="failed", error=str(e))

        analysis = self.analyzer.analyze(text, name)
        record = DocumentRecord.from_text(name, text, analysis)
        self.results[name] = record

        try:
            cache_path.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.exception("Error writing cache for %s", name)
            return ProcessResult(name=name, status="failed", record=record, error=str(e))

        if self.remote_enabled:
            try:
                self.drive.upload_artifact(
                    self.folder_id, cache_path, "application/json",
                    replace=self.replace_artifacts,
                )
            except Exception:
                logger.exception("Error uploading cache for %s", name)

        logger.info("Finished processing %s", name)
        return ProcessResult(name=name, status="processed", record=record)

    def scan_directory(self) -> list[ProcessResult]:
        """Run every source document in the data directory through the pipeline."""
        try:
            names = sorted(os.listdir(self.data_dir))
        except OSError:
            logger.exception("Error reading data directory %s", self.data_dir)
            return []
        return [
            self.process_file(self.data_dir / n)
            for n in names
            if is_source_file(n) and (self.data_dir / n).is_file()
        ]

    # ── URLs ──────────────────────────────────────────────────────────

    def process_url(self, url) -> DocumentRecord:
        """Fetch and analyze *url*.  Never cached; extraction errors propagate."""
        logger.info("Processing URL: %s...", url)
        try:
            text = self.url_extractor(url, timeout=self.url_timeout)
        except Exception:
            logger.exception("Error processing URL %s", url)
            raise

        analysis = self.analyzer.analyze(text, url, is_url=True)
        record = DocumentRecord.from_text(url, text, analysis, type="url")
        self.results[url] = record
        logger.info("Finished processing URL: %s", url)
        return record

    # ── Delete / publish ──────────────────────────────────────────────

    def delete(self, name) -> None:
        """Drop *name* from memory, disk and Drive (source and sidecar)."""
        self.results.pop(name, None)

        # Only source documents and their sidecars are removed locally; URL
        # keys and bookkeeping files such as the download ledger are left alone
        if os.path.basename(name) == name and is_source_file(name):
            source = self.data_dir / name
            for path in (source, sidecar_path(source)):
                if path.exists():
                    path.unlink()

        if self.remote_enabled:
            self.drive.delete_by_name(self.folder_id, name)
            self.drive.delete_by_name(self.folder_id, name + SIDECAR_SUFFIX)

        logger.info("Deleted %s and its analysis.", name)

    def save_to_drive(self, name) -> dict:
        """Upload the analysis text of *name* as a summary file on Drive."""
        record = self.results[name]
        if not self.remote_enabled:
            raise RuntimeError("Drive folder ID not configured")
        return self.drive.upload_summary(self.folder_id, name, record.analysis)
