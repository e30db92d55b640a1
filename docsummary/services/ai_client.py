"""Centralized AI client for all Claude API interactions."""

import anthropic

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


class AIClient:
    """Wrapper around the Anthropic API used for document analysis."""

    def __init__(self, api_key="", model=None):
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL

    @property
    def configured(self):
        return bool(self.api_key)

    def _get_client(self):
        if not self.api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY is not set. Add it to your .env file or environment."
            )
        return anthropic.Anthropic(api_key=self.api_key)

    def generate(self, user_prompt, system_prompt=None, max_tokens=4096, temperature=0.3):
        """Send a prompt to Claude and return the text response."""
        client = self._get_client()
        kwargs = {}
        if system_prompt:
            kwargs["system"] = system_prompt
        message = client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": user_prompt}],
            **kwargs,
        )
        return message.content[0].text
