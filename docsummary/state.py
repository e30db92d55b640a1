"""
Application state: everything the request handlers and background triggers
share, owned by one object created in the app factory.
"""

import enum
import logging
import os
import threading
from collections import deque

from docsummary.services.ai_client import AIClient
from docsummary.services.analyzer import DocumentAnalyzer
from docsummary.services.drive_sync import DriveSync
from docsummary.services.processor import DocumentProcessor
from docsummary.services.triggers import DrivePoller, FolderWatcher

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


class SyncState(enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class LogBuffer(logging.Handler):
    """Keeps the last *capacity* formatted records for the debug endpoint."""

    def __init__(self, capacity=100):
        super().__init__()
        self.lines = deque(maxlen=capacity)
        self.setFormatter(logging.Formatter(LOG_FORMAT))

    def emit(self, record):
        try:
            self.lines.append(self.format(record))
        except Exception:
            self.handleError(record)

    def snapshot(self):
        return list(self.lines)


def setup_logging(level="INFO", log_file=""):
    """Configure root logging once: console plus an optional log file."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


class AppState:
    """Owns the result map, sync status, log buffer and collaborators."""

    def __init__(self, config, drive=None, analyzer=None, processor=None):
        self.config = config
        self.data_dir = config["DATA_DIR"]
        self.folder_id = config.get("DRIVE_FOLDER_ID", "")
        self.is_production = config.get("IS_PRODUCTION", False)
        self.results = {}

        self.log_buffer = LogBuffer(config.get("LOG_BUFFER_SIZE", 100))
        self._logger = logging.getLogger("docsummary")
        self._logger.setLevel(
            getattr(logging, str(config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
        )

        self.drive = drive or DriveSync(
            credentials_json=config.get("GOOGLE_CREDENTIALS_JSON", ""),
            credentials_file=config.get("GOOGLE_CREDENTIALS_FILE", ""),
        )
        self.analyzer = analyzer or DocumentAnalyzer(
            AIClient(config.get("ANTHROPIC_API_KEY", ""), config.get("ANTHROPIC_MODEL")),
            max_chars=config.get("ANALYSIS_MAX_CHARS", 20000),
            max_tokens=config.get("ANALYSIS_MAX_TOKENS", 4096),
        )
        self.processor = processor or DocumentProcessor(
            self.results,
            self.data_dir,
            analyzer=self.analyzer,
            drive=self.drive,
            folder_id=self.folder_id,
            replace_artifacts=config.get("DRIVE_REPLACE_ARTIFACTS", False),
            url_timeout=config.get("URL_FETCH_TIMEOUT"),
        )
        self.poller = DrivePoller(
            self.drive,
            self.processor,
            self.folder_id,
            self.data_dir,
            config.get("DRIVE_POLL_INTERVAL", 300),
        )
        self.watcher = FolderWatcher(self.processor, self.data_dir)

        self.sync_state = SyncState.NOT_STARTED
        self.last_sync = None
        self._sync_lock = threading.Lock()

        os.makedirs(self.data_dir, exist_ok=True)
        self._logger.addHandler(self.log_buffer)

    # ── Drive sync lifecycle ──────────────────────────────────────────

    def _run_initial_sync(self):
        if not self.folder_id:
            logger.info("Drive Sync skipped: DRIVE_FOLDER_ID not set")
            return

        logger.info("Starting Drive Sync for folder: %s to %s", self.folder_id, self.data_dir)
        self.last_sync = self.drive.sync(self.folder_id, self.data_dir)

        logger.info("Drive Sync complete. Processing downloaded files...")
        self.processor.scan_directory()

        if not self.is_production:
            self.poller.start()

    def ensure_initial_sync(self):
        """Run the initial sync once; concurrent callers wait for it to finish."""
        if self.sync_state is SyncState.DONE:
            return
        with self._sync_lock:
            if self.sync_state is SyncState.DONE:
                return
            self._sync_under_lock()

    def initial_sync(self, force=False):
        """Run the initial sync now, even if it already ran when *force* is set."""
        with self._sync_lock:
            if self.sync_state is SyncState.DONE and not force:
                return
            self._sync_under_lock()

    def _sync_under_lock(self):
        self.sync_state = SyncState.IN_PROGRESS
        try:
            self._run_initial_sync()
        except Exception:
            logger.exception("Drive Sync initialization failed")
        finally:
            self.sync_state = SyncState.DONE

    # ── Background triggers ───────────────────────────────────────────

    def start(self):
        """Development mode: scan, watch and sync right away."""
        if self.is_production:
            return
        self.processor.scan_directory()
        self.watcher.start()
        self.initial_sync()

    def stop(self):
        self.poller.stop()
        self.watcher.stop()
        self._logger.removeHandler(self.log_buffer)
