"""Shared fixtures: fake Drive collaborators, a stub AI client, sample PDFs."""

from __future__ import annotations

import re
from pathlib import Path

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from docsummary import create_app
from docsummary.config import Config
from docsummary.models import SyncResult
from docsummary.services.analyzer import DocumentAnalyzer
from docsummary.services.drive_sync import SYNC_MIME_TYPES, DriveSync
from docsummary.state import AppState

STUB_ANALYSIS = "## Executive Summary\nStub analysis for tests."


# ---------------------------------------------------------------------------
# AI
# ---------------------------------------------------------------------------

class StubAIClient:
    """Deterministic stand-in for AIClient that records every prompt."""

    def __init__(self, response=STUB_ANALYSIS, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    @property
    def configured(self):
        return True

    def generate(self, user_prompt, **kwargs):
        self.prompts.append(user_prompt)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def ai_client() -> StubAIClient:
    return StubAIClient()


@pytest.fixture
def analyzer(ai_client) -> DocumentAnalyzer:
    return DocumentAnalyzer(ai_client)


# ---------------------------------------------------------------------------
# Drive: processor-level fake
# ---------------------------------------------------------------------------

class FakeDrive:
    """Records the DriveSync calls the processor and state make."""

    def __init__(self, sync_result=None):
        self.sync_result = sync_result or SyncResult()
        self.sync_calls = []
        self.uploads = []
        self.summaries = []
        self.deleted = []
        self.upload_error = None

    def sync(self, folder_id, local_dir):
        self.sync_calls.append((folder_id, Path(local_dir)))
        return self.sync_result

    def upload_artifact(self, folder_id, local_path, mime_type, replace=False):
        if self.upload_error:
            raise self.upload_error
        self.uploads.append((folder_id, Path(local_path).name, mime_type, replace))
        return {"id": f"up-{len(self.uploads)}", "name": Path(local_path).name}

    def upload_summary(self, folder_id, original_name, text):
        self.summaries.append((folder_id, original_name, text))
        return {"id": "summary-1", "name": original_name.rsplit(".", 1)[0] + "_analysis.txt"}

    def delete_by_name(self, folder_id, name):
        self.deleted.append((folder_id, name))
        return True


@pytest.fixture
def fake_drive() -> FakeDrive:
    return FakeDrive()


# ---------------------------------------------------------------------------
# Drive: API-level fake for DriveSync itself
# ---------------------------------------------------------------------------

class _Request:
    def __init__(self, result):
        self.result = result

    def execute(self):
        return self.result


class FakeFilesResource:
    """Answers the handful of Drive v3 ``files()`` queries DriveSync issues."""

    def __init__(self, folder_files, visible_files=None, list_error=None):
        self.folder_files = folder_files
        self.visible_files = visible_files or []
        self.list_error = list_error
        self.queries = []
        self.created = []
        self.updated = []
        self.deleted = []

    def list(self, q, **kwargs):
        self.queries.append(q)
        if self.list_error:
            raise self.list_error
        name_match = re.search(r"name = '((?:[^'\\]|\\.)*)'", q)
        if name_match:
            name = re.sub(r"\\(.)", r"\1", name_match.group(1))
            files = [f for f in self.folder_files if f["name"] == name]
        elif "in parents" in q and "mimeType" in q:
            files = [f for f in self.folder_files if f.get("mimeType") in SYNC_MIME_TYPES]
        elif "in parents" in q:
            files = list(self.folder_files)
        else:
            files = list(self.visible_files)
        return _Request({"files": files})

    def create(self, body, media_body=None, fields=None):
        self.created.append(body)
        return _Request({"id": f"new-{len(self.created)}", "name": body["name"]})

    def update(self, fileId, media_body=None, fields=None):
        self.updated.append(fileId)
        return _Request({"id": fileId, "name": "updated"})

    def delete(self, fileId):
        self.deleted.append(fileId)
        return _Request({})


class FakeDriveService:
    def __init__(self, files_resource):
        self._files = files_resource

    def files(self):
        return self._files


class RecordingDriveSync(DriveSync):
    """DriveSync with downloads served from memory instead of the network."""

    def __init__(self, files_resource, contents=None, failing_ids=()):
        super().__init__(service=FakeDriveService(files_resource))
        self.contents = contents or {}
        self.failing_ids = set(failing_ids)
        self.downloads = []

    def download_file(self, file_id, dest):
        if file_id in self.failing_ids:
            raise IOError(f"download of {file_id} failed")
        self.downloads.append(file_id)
        dest.write_bytes(self.contents.get(file_id, b"%PDF-1.4 fake"))
        return dest


def drive_file(file_id, name, mime="application/pdf", modified="2024-01-01T00:00:00.000Z"):
    return {"id": file_id, "name": name, "mimeType": mime, "modifiedTime": modified}


# ---------------------------------------------------------------------------
# PDFs
# ---------------------------------------------------------------------------

def make_pdf(path: Path, pages: list[str]) -> Path:
    """Write a text-bearing PDF with one page per entry in *pages*."""
    c = canvas.Canvas(str(path), pagesize=letter)
    for page_text in pages:
        y = 720
        for line in page_text.splitlines():
            c.drawString(72, y, line)
            y -= 16
        c.showPage()
    c.save()
    return path


REPORT_PAGES = [
    "Quarterly Report\nRevenue grew twelve percent over the prior quarter.\n"
    "The board approved the new warehouse lease in Portland.",
    "Action Items\nFinance must submit the revised budget by March 15.\n"
    "Legal will review the vendor contract before renewal.",
    "Open Questions\nShould the hiring freeze continue into the next quarter?\n"
    "Who owns the migration of the billing system?",
]


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

def make_config(data_dir: Path, **overrides) -> dict:
    config = {k: getattr(Config, k) for k in dir(Config) if k.isupper()}
    config.update(
        APP_ENV="test",
        IS_PRODUCTION=True,
        DATA_DIR=str(data_dir),
        DRIVE_FOLDER_ID="",
        ANTHROPIC_API_KEY="",
        GOOGLE_CREDENTIALS_JSON="",
        DRIVE_REPLACE_ARTIFACTS=False,
        LOG_LEVEL="INFO",
    )
    config.update(overrides)
    return config


@pytest.fixture
def make_state(data_dir, fake_drive, analyzer):
    created = []

    def _make(**overrides):
        state = AppState(make_config(data_dir, **overrides), drive=fake_drive, analyzer=analyzer)
        created.append(state)
        return state

    yield _make
    for state in created:
        state.stop()


@pytest.fixture
def make_client(make_state):
    def _make(**overrides):
        state = make_state(**overrides)
        app = create_app(type("TestConfig", (), dict(state.config)), state=state)
        app.config["TESTING"] = True
        return app.test_client(), state

    return _make
