"""
Credential Loader — resolves Google Drive authentication.

Production hosts pass the service-account JSON through the
GOOGLE_CREDENTIALS_JSON environment variable; local development falls back
to a key file on disk.
"""

import json
import logging

import google.auth
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive"]


def load_credentials(credentials_json="", credentials_file=""):
    """
    Return Google credentials for the Drive API.

    A blob that fails to parse is logged and loading falls through to
    application-default credentials.  When none exist, google.auth raises
    DefaultCredentialsError; DriveSync builds its client lazily, so that
    error surfaces on the first Drive operation rather than at startup.
    """
    if credentials_json:
        try:
            info = json.loads(credentials_json)
            return service_account.Credentials.from_service_account_info(
                info, scopes=SCOPES
            )
        except ValueError:
            logger.exception("Error parsing GOOGLE_CREDENTIALS_JSON")
        credentials, _ = google.auth.default(scopes=SCOPES)
        return credentials

    return service_account.Credentials.from_service_account_file(
        credentials_file, scopes=SCOPES
    )


def credentials_status(credentials_json=""):
    """Summarize the env credential blob for the debug endpoint."""
    status = {"status": "Missing", "clientEmail": "Unknown", "error": None}
    if not credentials_json:
        return status
    try:
        creds = json.loads(credentials_json)
    except ValueError as e:
        status.update(status="Invalid JSON", error=str(e))
        return status
    status["status"] = "Valid JSON"
    if isinstance(creds, dict):
        status["clientEmail"] = creds.get("client_email", "Unknown")
    return status
