"""
Google Drive Sync — one-way pull of a Drive folder into the local data
directory, plus the upload and delete helpers used to mirror results back.

Downloads are reconciled against a ledger (``downloaded_files.json`` in the
data directory) keyed by Drive file ID.  An ID already in the ledger is never
fetched again, even if the remote copy was edited afterwards; such files are
only reported as stale.
"""

import io
import json
import logging
import os
from pathlib import Path

from googleapiclient.discovery import build
from googleapiclient.http import MediaFileUpload, MediaIoBaseDownload, MediaIoBaseUpload

from docsummary.models import LedgerEntry, SyncResult, utc_now_iso
from docsummary.services.credentials import load_credentials

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "downloaded_files.json"

# Source documents plus the sidecar caches we upload ourselves
SYNC_MIME_TYPES = ("application/pdf", "application/json")

SUMMARY_SUFFIX = "_analysis.txt"

FILE_FIELDS = "nextPageToken, files(id, name, mimeType, modifiedTime)"


# ── Ledger ────────────────────────────────────────────────────────────

def ledger_path(local_dir) -> Path:
    return Path(local_dir) / LEDGER_FILENAME


def load_ledger(local_dir) -> dict[str, LedgerEntry]:
    """Read the ledger; a missing or unreadable file counts as empty."""
    path = ledger_path(local_dir)
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.exception("Drive Sync: ledger %s unreadable, starting fresh", path)
        return {}
    if not isinstance(raw, dict):
        logger.warning("Drive Sync: ledger %s is not an object, starting fresh", path)
        return {}
    return {
        file_id: LedgerEntry.from_dict(entry)
        for file_id, entry in raw.items()
        if isinstance(entry, dict)
    }


def save_ledger(local_dir, ledger: dict[str, LedgerEntry]) -> None:
    path = ledger_path(local_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps({k: v.to_dict() for k, v in ledger.items()}, indent=2),
        encoding="utf-8",
    )


def summary_name(original_name: str) -> str:
    return os.path.splitext(original_name)[0] + SUMMARY_SUFFIX


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _is_newer(remote_modified, recorded_modified) -> bool:
    # Drive returns RFC 3339 timestamps in a fixed format, so string order is time order
    return bool(remote_modified and recorded_modified and remote_modified > recorded_modified)


class DriveSync:
    """Thin wrapper around the Drive v3 API for the sync workflow.

    The API client is built on first use so a broken credential
    configuration fails the first Drive operation, not construction.
    """

    def __init__(self, credentials_json="", credentials_file="", service=None):
        self.credentials_json = credentials_json
        self.credentials_file = credentials_file
        self._service = service

    @property
    def service(self):
        if self._service is None:
            creds = load_credentials(self.credentials_json, self.credentials_file)
            self._service = build("drive", "v3", credentials=creds, cache_discovery=False)
        return self._service

    # ── Listing ───────────────────────────────────────────────────────

    def _list(self, query: str, paginate: bool = True, page_size: int = 100) -> list[dict]:
        files = []
        page_token = None
        while True:
            response = (
                self.service.files()
                .list(q=query, fields=FILE_FIELDS, pageSize=page_size, pageToken=page_token)
                .execute()
            )
            files.extend(response.get("files", []))
            page_token = response.get("nextPageToken")
            if not paginate or not page_token:
                return files

    def list_folder(self, folder_id: str) -> list[dict]:
        """Non-trashed files in the folder whose type is in SYNC_MIME_TYPES."""
        mime_filter = " or ".join(f"mimeType = '{m}'" for m in SYNC_MIME_TYPES)
        return self._list(
            f"'{_quote(folder_id)}' in parents and ({mime_filter}) and trashed = false"
        )

    def find_by_name(self, folder_id: str, name: str) -> list[dict]:
        return self._list(
            f"'{_quote(folder_id)}' in parents and name = '{_quote(name)}' and trashed = false"
        )

    def _diagnose_empty_folder(self, folder_id: str) -> None:
        """Log hints about why a listing came back empty.  Advisory only."""
        try:
            anything = self._list(
                f"'{_quote(folder_id)}' in parents and trashed = false",
                paginate=False,
                page_size=10,
            )
            if anything:
                logger.warning(
                    "Drive Sync: folder %s holds %d file(s) but none of type %s: %s",
                    folder_id,
                    len(anything),
                    ", ".join(SYNC_MIME_TYPES),
                    ", ".join(f"{f.get('name')} ({f.get('mimeType')})" for f in anything),
                )
                return

            visible = self._list("trashed = false", paginate=False, page_size=10)
            if visible:
                logger.warning(
                    "Drive Sync: folder %s looks empty or wrong; the account can see "
                    "%d other file(s), e.g. %s",
                    folder_id,
                    len(visible),
                    ", ".join(f.get("name", "?") for f in visible),
                )
            else:
                logger.warning(
                    "Drive Sync: the account can see no files at all. Is folder %s "
                    "shared with the service account?",
                    folder_id,
                )
        except Exception:
            logger.exception("Drive Sync: diagnostics failed")

    # ── Download ──────────────────────────────────────────────────────

    def download_file(self, file_id: str, dest: Path) -> Path:
        request = self.service.files().get_media(fileId=file_id)
        buf = io.BytesIO()
        downloader = MediaIoBaseDownload(buf, request)
        done = False
        while not done:
            _, done = downloader.next_chunk()
        dest.write_bytes(buf.getvalue())
        return dest

    def sync(self, folder_id: str, local_dir) -> SyncResult:
        """
        Pull every allowed file in *folder_id* that the ledger has not seen
        into *local_dir*.  Failures are logged and reported in the result.
        """
        if not folder_id:
            logger.info("Drive Sync: No Folder ID provided. Skipping.")
            return SyncResult(ran=False)

        logger.info("Drive Sync: Checking for new files...")
        result = SyncResult()
        try:
            files = self.list_folder(folder_id)
        except Exception as e:
            logger.exception("Drive Sync Error")
            result.error = str(e)
            return result

        if not files:
            logger.info("Drive Sync: No files found.")
            self._diagnose_empty_folder(folder_id)
            return result

        local_dir = Path(local_dir)
        local_dir.mkdir(parents=True, exist_ok=True)
        ledger = load_ledger(local_dir)

        # Sidecars land before their PDFs so a watcher sees the cache first
        files = sorted(files, key=lambda f: f.get("mimeType") != "application/json")

        for meta in files:
            file_id, name = meta["id"], meta["name"]
            known = ledger.get(file_id)
            if known is not None:
                result.skipped.append(name)
                if _is_newer(meta.get("modifiedTime"), known.drive_modified_time):
                    logger.warning(
                        "Drive Sync: %s changed on Drive since it was downloaded; not re-pulling",
                        name,
                    )
                    result.stale.append(name)
                continue

            logger.info("Drive Sync: Downloading %s...", name)
            dest = local_dir / os.path.basename(name)
            try:
                self.download_file(file_id, dest)
            except Exception:
                logger.exception("Drive Sync: Error downloading %s", name)
                result.failed.append(name)
                continue

            ledger[file_id] = LedgerEntry(
                name=name,
                downloaded_at=utc_now_iso(),
                drive_modified_time=meta.get("modifiedTime"),
            )
            result.downloaded.append(name)
            result.saved.append(dest)
            logger.info("Drive Sync: Downloaded %s", name)

        if result.downloaded:
            save_ledger(local_dir, ledger)
            logger.info("Drive Sync: Downloaded %d new files.", len(result.downloaded))
        else:
            logger.info("Drive Sync: No new files to download.")
        return result

    # ── Upload / delete ───────────────────────────────────────────────

    def upload_artifact(self, folder_id: str, local_path, mime_type: str, replace: bool = False) -> dict:
        """
        Create a Drive file from *local_path*.  With *replace*, an existing
        file of the same name in the folder is overwritten instead.
        """
        local_path = Path(local_path)
        media = MediaFileUpload(str(local_path), mimetype=mime_type)

        if replace:
            existing = self.find_by_name(folder_id, local_path.name)
            if existing:
                uploaded = (
                    self.service.files()
                    .update(fileId=existing[0]["id"], media_body=media, fields="id, name")
                    .execute()
                )
                logger.info("Drive Sync: Replaced %s on Drive (%s)", local_path.name, uploaded.get("id"))
                return uploaded

        metadata = {"name": local_path.name, "parents": [folder_id]}
        uploaded = (
            self.service.files()
            .create(body=metadata, media_body=media, fields="id, name")
            .execute()
        )
        logger.info("Drive Sync: Uploaded %s to Drive (%s)", local_path.name, uploaded.get("id"))
        return uploaded

    def upload_summary(self, folder_id: str, original_name: str, text: str) -> dict:
        name = summary_name(original_name)
        media = MediaIoBaseUpload(io.BytesIO(text.encode("utf-8")), mimetype="text/plain")
        metadata = {"name": name, "parents": [folder_id], "mimeType": "text/plain"}
        uploaded = (
            self.service.files()
            .create(body=metadata, media_body=media, fields="id, name, webViewLink")
            .execute()
        )
        logger.info("Drive Sync: Saved summary %s (%s)", name, uploaded.get("id"))
        return uploaded

    def delete_by_name(self, folder_id: str, name: str) -> bool:
        """Delete every file named *name* in the folder.  True if any matched."""
        matches = self.find_by_name(folder_id, name)
        if not matches:
            logger.info("Drive Sync: %s not found on Drive, nothing to delete", name)
            return False
        for meta in matches:
            self.service.files().delete(fileId=meta["id"]).execute()
            logger.info("Drive Sync: Deleted %s from Drive (%s)", name, meta["id"])
        return True
