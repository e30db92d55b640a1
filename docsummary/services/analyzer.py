"""
Document Analyzer — turns extracted text into a five-part structured summary.

The analyzer never raises: a missing API key or a failed call produces a
placeholder string instead, so callers always get something displayable.
Use ``is_placeholder`` to tell a real analysis from one of those.
"""

import logging

from docsummary.services.ai_client import AIClient

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API Key missing. Please add ANTHROPIC_API_KEY to .env file."
ERROR_PREFIX = "Error generating AI analysis: "

DEFAULT_MAX_CHARS = 20000

ANALYSIS_PROMPT = """\
Analyze the following text from {source}. Provide a comprehensive and detailed analysis.

**Output Structure:**

1.  **Executive Summary**: A concise paragraph summarizing the main topic and purpose of the {subject}.
2.  **Detailed Key Points**: A bulleted list of the most important information, facts, or arguments presented. Be specific.
3.  **Action Items & Deadlines**: Extract any tasks, calls to action, or specific dates/deadlines mentioned. If none, state "None identified."
4.  **Technical/Medical Terminology**: If the text contains specialized terms (medical, legal, technical), list and briefly define them based on context.
5.  **Unresolved Questions**: Identify any questions raised in the text that remain unanswered or require follow-up.

**Text Content:**
{text}
"""


def build_prompt(text, label, is_url=False, max_chars=DEFAULT_MAX_CHARS):
    if is_url:
        source, subject = f"a website ({label})", "web page"
    else:
        source, subject = f"a notebook or document PDF ({label})", "document"
    return ANALYSIS_PROMPT.format(source=source, subject=subject, text=text[:max_chars])


def is_placeholder(analysis):
    return analysis == MISSING_KEY_MESSAGE or analysis.startswith(ERROR_PREFIX)


class DocumentAnalyzer:
    """Runs the fixed analysis prompt through the AI client."""

    def __init__(self, ai_client=None, max_chars=DEFAULT_MAX_CHARS, max_tokens=4096):
        self.ai = ai_client or AIClient()
        self.max_chars = max_chars
        self.max_tokens = max_tokens

    def analyze(self, text, label, is_url=False):
        if not self.ai.configured:
            logger.warning("No ANTHROPIC_API_KEY configured; skipping analysis of %s", label)
            return MISSING_KEY_MESSAGE

        prompt = build_prompt(text, label, is_url=is_url, max_chars=self.max_chars)
        try:
            return self.ai.generate(prompt, max_tokens=self.max_tokens)
        except Exception as e:
            logger.exception("AI Error while analyzing %s", label)
            return f"{ERROR_PREFIX}{e}"
