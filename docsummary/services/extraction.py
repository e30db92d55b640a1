"""Plain-text extraction from PDFs and web pages.

Both helpers let fetch/parse errors propagate; the processor decides whether
that aborts the document or not.
"""

import logging
from pathlib import Path

import pdfplumber
import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

# Page chrome that never carries document content
NON_CONTENT_TAGS = ["script", "style", "nav", "footer", "header"]


def extract_pdf_text(file_path) -> str:
    """Text layer of every page, joined by blank lines.  No OCR."""
    with pdfplumber.open(Path(file_path)) as pdf:
        return "\n\n".join(page.extract_text() or "" for page in pdf.pages)


def html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()
    root = soup.body or soup
    return " ".join(root.get_text(" ").split())


def extract_url_text(url: str, timeout: float | None = None) -> str:
    """Fetch *url* with a browser-like User-Agent and return its visible text."""
    resp = requests.get(
        url,
        headers={"User-Agent": BROWSER_USER_AGENT},
        timeout=timeout,
    )
    resp.raise_for_status()
    logger.debug("Fetched %s (%d bytes)", url, len(resp.content))
    return html_to_text(resp.text)
