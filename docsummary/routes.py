"""Flask routes for docsummary.

Provides API endpoints for:
- Listing and deleting processed documents
- Processing a web page by URL
- Saving an analysis to Google Drive
- A diagnostic snapshot of the running instance
"""

import logging
import os

from flask import Blueprint, current_app, jsonify, request

from docsummary import EXTENSION_KEY
from docsummary.services.credentials import credentials_status
from docsummary.state import SyncState

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


def _state():
    return current_app.extensions[EXTENSION_KEY]


@api_bp.before_request
def ensure_drive_sync():
    """Serverless hosts have no startup hook, so the first request syncs."""
    _state().ensure_initial_sync()


# ─── Results ───────────────────────────────────────────────────────────

@api_bp.route("/results", methods=["GET"])
def list_results():
    return jsonify([r.to_dict() for r in list(_state().results.values())])


@api_bp.route("/results/<path:filename>", methods=["DELETE"])
def delete_result(filename):
    """Remove a document from memory, the data directory and Drive."""
    try:
        _state().processor.delete(filename)
    except Exception as e:
        logger.exception("Error deleting %s", filename)
        return jsonify({"success": False, "message": f"Error deleting file: {e}"}), 500
    return jsonify({"success": True, "message": f"{filename} deleted"})


# ─── Processing ────────────────────────────────────────────────────────

@api_bp.route("/process-url", methods=["POST"])
def process_url():
    """Extract and analyze a web page.

    Expects JSON body:
    {
        "url": "https://example.com/article"
    }
    """
    data = request.get_json(silent=True) or {}
    url = data.get("url")
    if not url:
        return jsonify({"success": False, "message": "URL is required"}), 400

    try:
        record = _state().processor.process_url(url)
    except Exception as e:
        return jsonify({"success": False, "message": f"Error processing URL: {e}"}), 500
    return jsonify({
        "success": True,
        "message": "URL processed successfully",
        "result": record.to_dict(),
    })


@api_bp.route("/save-to-drive", methods=["POST"])
def save_to_drive():
    """Upload a document's analysis to Drive as a plain-text summary.

    Expects JSON body:
    {
        "filename": "report.pdf"
    }
    """
    data = request.get_json(silent=True) or {}
    filename = data.get("filename")
    if not filename:
        return jsonify({"success": False, "message": "Filename is required"}), 400

    state = _state()
    if filename not in state.results:
        return jsonify({"success": False, "message": "File not found in processed files"}), 404
    if not state.folder_id:
        return jsonify({"success": False, "message": "Drive folder ID not configured"}), 500

    try:
        drive_file = state.processor.save_to_drive(filename)
    except Exception as e:
        logger.exception("Error saving %s to Drive", filename)
        return jsonify({"success": False, "message": f"Error saving to Drive: {e}"}), 500
    return jsonify({
        "success": True,
        "message": "Summary saved to Google Drive successfully",
        "driveFile": drive_file,
    })


# ─── Diagnostics ───────────────────────────────────────────────────────

@api_bp.route("/debug", methods=["GET"])
def debug():
    """Snapshot of configuration, data directory and recent logs.

    Query params:
    - forceSync: "true" re-runs the Drive sync before answering
    """
    state = _state()
    if request.args.get("forceSync") == "true":
        logger.info("Force Sync requested via Debug API")
        state.initial_sync(force=True)

    data_dir = state.data_dir
    try:
        if os.path.isdir(data_dir):
            files_in_data_dir = sorted(os.listdir(data_dir))
        else:
            files_in_data_dir = ["DATA_DIR does not exist"]
    except OSError as e:
        files_in_data_dir = [f"Error reading DATA_DIR: {e}"]

    config = state.config
    creds = credentials_status(config.get("GOOGLE_CREDENTIALS_JSON", ""))
    names = list(state.results.keys())

    return jsonify({
        "appEnv": config.get("APP_ENV"),
        "dataDir": str(data_dir),
        "filesInDataDir": files_in_data_dir,
        "processedFilesCount": len(names),
        "processedFileNames": names,
        "driveSyncState": state.sync_state.value,
        "driveSyncInitialized": state.sync_state is SyncState.DONE,
        "lastSync": state.last_sync.to_dict() if state.last_sync else None,
        "envVars": {
            "ANTHROPIC_API_KEY": "Present" if config.get("ANTHROPIC_API_KEY") else "Missing",
            "DRIVE_FOLDER_ID": config.get("DRIVE_FOLDER_ID") or "Missing",
            "GOOGLE_CREDENTIALS_JSON": creds["status"],
            "clientEmail": creds["clientEmail"],
            "credentialsError": creds["error"],
        },
        "logs": state.log_buffer.snapshot(),
    })
