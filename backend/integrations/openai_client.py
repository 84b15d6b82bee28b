"""
OpenAI-compatible chat-completions client.
Wraps POST {base_url}/chat/completions. One request per call: retry policy
belongs to the caller.
"""
import logging
from typing import Optional
import httpx

from config import Settings, settings as default_settings
from core.errors import MalformedResponseError, NoApiKeyError, UpstreamError

logger = logging.getLogger(__name__)


class OpenAIClient:
    """Thin client for an OpenAI-style completion endpoint."""

    def __init__(self, config: Optional[Settings] = None, http: Optional[httpx.Client] = None):
        config = config or default_settings
        self.api_key = config.PROVIDER_API_KEY.strip()
        self.model = config.MODEL_NAME
        self.base = config.PROVIDER_BASE_URL.rstrip("/")
        self.temperature = config.TEMPERATURE
        self.max_tokens = config.MAX_OUTPUT_TOKENS
        self.client = http or httpx.Client(timeout=config.PROVIDER_TIMEOUT_SECONDS)

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()

    def close(self):
        self.client.close()

    def complete(self, messages: list[dict]) -> str:
        """
        Send a list of {role, content} messages and return the completion text.
        Raises NoApiKeyError, UpstreamError or MalformedResponseError.
        """
        if not self.api_key:
            raise NoApiKeyError()

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        logger.debug("Completion request: model=%s, %d messages", self.model, len(messages))
        try:
            resp = self.client.post(f"{self.base}/chat/completions", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Provider request failed: {e}") from e

        if resp.status_code != 200:
            raise UpstreamError(f"Provider API error: {_error_message(resp)}", status=resp.status_code)

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError("Invalid response from provider API") from e
        if not isinstance(content, str):
            raise MalformedResponseError("Invalid response from provider API")

        logger.debug("Completion length: %d chars", len(content))
        return content


def _error_message(resp: httpx.Response) -> str:
    try:
        return resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {resp.status_code}"
