"""Records held in memory and persisted as sidecar / ledger JSON."""

import datetime
from dataclasses import dataclass, field
from pathlib import Path

PREVIEW_LENGTH = 200


def utc_now_iso():
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass
class DocumentRecord:
    """One processed input: a local file or a URL."""
    name: str
    analysis: str
    text_preview: str = ""
    timestamp: str = field(default_factory=utc_now_iso)
    type: str | None = None  # "url" for URL records, None for local files

    @classmethod
    def from_text(cls, name, text, analysis, type=None):
        return cls(
            name=name,
            analysis=analysis,
            text_preview=text[:PREVIEW_LENGTH] + "...",
            type=type,
        )

    def to_dict(self):
        # camelCase keys keep sidecars written by earlier deployments readable
        data = {
            "name": self.name,
            "timestamp": self.timestamp,
            "textPreview": self.text_preview,
            "analysis": self.analysis,
        }
        if self.type:
            data["type"] = self.type
        return data

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict) or "name" not in data:
            raise ValueError("document record must be an object with a 'name'")
        return cls(
            name=data["name"],
            analysis=data.get("analysis", ""),
            text_preview=data.get("textPreview", ""),
            timestamp=data.get("timestamp") or utc_now_iso(),
            type=data.get("type"),
        )


@dataclass
class LedgerEntry:
    """A Drive file already pulled into the data directory."""
    name: str
    downloaded_at: str
    drive_modified_time: str | None = None

    def to_dict(self):
        return {
            "name": self.name,
            "downloadedAt": self.downloaded_at,
            "driveModifiedTime": self.drive_modified_time,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=data.get("name", ""),
            downloaded_at=data.get("downloadedAt", ""),
            drive_modified_time=data.get("driveModifiedTime"),
        )


@dataclass
class SyncResult:
    """Outcome of a single Drive sync pass.

    ``downloaded`` holds Drive names; ``saved`` holds the local paths those
    downloads were written to, which differ when a Drive name contains ``/``.
    """
    downloaded: list[str] = field(default_factory=list)
    saved: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    stale: list[str] = field(default_factory=list)
    error: str | None = None
    ran: bool = True

    @property
    def ok(self):
        return self.error is None and not self.failed

    def to_dict(self):
        return {
            "ran": self.ran,
            "downloaded": self.downloaded,
            "skipped": self.skipped,
            "failed": self.failed,
            "stale": self.stale,
            "error": self.error,
        }


@dataclass
class ProcessResult:
    """Outcome of running one file through the processor."""
    name: str
    status: str  # cached | processed | failed
    record: DocumentRecord | None = None
    error: str | None = None

    @property
    def ok(self):
        return self.status != "failed"
