"""
Change triggers that feed file paths to the processor:

  - FolderWatcher: watchdog observer on the data directory (development)
  - DrivePoller:   periodic Drive sync followed by processing of new PDFs

The startup scan lives on the processor itself (``scan_directory``).
"""

import logging
import threading
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from docsummary.services.processor import is_source_file

logger = logging.getLogger(__name__)


def run_in_background(target, *args, name=None):
    """Start *target* on a daemon thread; nothing waits for it."""
    thread = threading.Thread(target=target, args=args, name=name, daemon=True)
    thread.start()
    return thread


class SourceFileHandler(FileSystemEventHandler):
    """Hands added or changed source documents to the processor.

    Sidecar ``.json`` files and dotfiles are ignored so our own cache
    writes never re-trigger processing.  Events for a path that is still
    being processed are dropped, so a file copied in chunks yields one run
    rather than one per write.
    """

    def __init__(self, processor, dispatch=run_in_background):
        self.processor = processor
        self.dispatch = dispatch
        self._in_flight = set()
        self._lock = threading.Lock()

    def _handle(self, kind, path):
        if not is_source_file(path):
            return
        path = Path(path)
        with self._lock:
            if path in self._in_flight:
                logger.debug("File %s: %s (already processing)", kind, path)
                return
            self._in_flight.add(path)
        logger.info("File %s: %s", kind, path)
        self.dispatch(self._process, path)

    def _process(self, path):
        try:
            return self.processor.process_file(path)
        finally:
            with self._lock:
                self._in_flight.discard(path)

    def on_created(self, event):
        if not event.is_directory:
            self._handle("added", event.src_path)

    def on_modified(self, event):
        if not event.is_directory:
            self._handle("changed", event.src_path)

    def on_moved(self, event):
        if not event.is_directory:
            self._handle("added", event.dest_path)


class FolderWatcher:
    """Watches the data directory for new or changed PDFs."""

    def __init__(self, processor, data_dir):
        self.data_dir = Path(data_dir)
        self.handler = SourceFileHandler(processor)
        self._observer = None

    @property
    def running(self):
        return self._observer is not None

    def start(self):
        if self._observer is not None:
            return
        self.data_dir.mkdir(parents=True, exist_ok=True)
        observer = Observer()
        observer.schedule(self.handler, str(self.data_dir), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Watching %s for new documents", self.data_dir)

    def stop(self):
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None


class DrivePoller:
    """Re-runs the Drive sync every *interval* seconds until stopped."""

    def __init__(self, drive, processor, folder_id, data_dir, interval):
        self.drive = drive
        self.processor = processor
        self.folder_id = folder_id
        self.data_dir = Path(data_dir)
        self.interval = interval
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self):
        """One cycle: sync, then process any PDFs that were just downloaded."""
        result = self.drive.sync(self.folder_id, self.data_dir)
        processed = []
        for path in result.saved:
            if is_source_file(path):
                processed.append(self.processor.process_file(path))
        return result, processed

    def _run(self):
        logger.info(
            "Starting Drive poller for folder %s, interval %ds",
            self.folder_id,
            self.interval,
        )
        while not self._stop.wait(self.interval):
            try:
                self.poll_once()
            except Exception:
                logger.exception("Error during Drive poll cycle")

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = run_in_background(self._run, name="drive-poller")

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
