"""Thin client for the LLM oracle: Open WebUI first, local Ollama as the fallback."""

import os
import time
import requests

from .config import settings
from .errors import OracleUnavailableError
from utils.logging_utils import setup_logging, get_tagged_logger, mask_url

setup_logging(level=os.getenv("LOG_LEVEL", "INFO"))
logger = get_tagged_logger(__name__, tag="oracle_client")


class OracleClient:
    """Send a single prompt and return the generated text.

    Both endpoints honour the same contract (prompt in, text out), so callers
    never learn which one answered.
    """
    def __init__(
        self,
        *,
        open_webui_url: str | None = None,
        ollama_base_url: str | None = None,
        model: str | None = None,
        request_timeout: float | None = None,
        max_retries: int | None = None,
    ):
        """Initialize client configuration, defaulting to settings."""
        webui = open_webui_url if open_webui_url is not None else settings.open_webui_url
        ollama = ollama_base_url if ollama_base_url is not None else settings.ollama_base_url
        self.primary_url = f"{webui.rstrip('/')}/api/v1/chat/completions" if webui else None
        self.secondary_url = f"{ollama.rstrip('/')}/api/generate" if ollama else None
        self.model = model or settings.oracle_model
        self.request_timeout = request_timeout or settings.oracle_request_timeout_seconds
        self.max_retries = settings.oracle_retries if max_retries is None else max_retries
        self.retry_backoff_sec = float(os.getenv("LOCATOR_ORACLE_RETRY_BACKOFF_SEC", "0.5"))

    def complete(self, prompt: str) -> str:
        """Return the oracle's reply to `prompt`, trying the primary then the secondary endpoint."""
        errors: list[str] = []
        if self.primary_url:
            try:
                return self._post(self.primary_url, self._chat_payload(prompt), self._chat_content)
            except (requests.exceptions.RequestException, RuntimeError) as exc:
                logger.warning("Primary oracle failed; trying secondary", extra={"error": str(exc)})
                errors.append(f"primary: {exc}")
        if self.secondary_url:
            try:
                return self._post(self.secondary_url, self._generate_payload(prompt), self._generate_content)
            except (requests.exceptions.RequestException, RuntimeError) as exc:
                logger.warning("Secondary oracle failed", extra={"error": str(exc)})
                errors.append(f"secondary: {exc}")
        raise OracleUnavailableError("; ".join(errors) or "no oracle endpoint configured")

    def _chat_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
        }

    def _generate_payload(self, prompt: str) -> dict:
        return {"model": self.model, "prompt": prompt, "stream": False}

    @staticmethod
    def _chat_content(data: dict) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RuntimeError(f"Unexpected chat completion shape: {str(data)[:200]}") from exc
        if not isinstance(content, str):
            raise RuntimeError(f"Chat completion carried no text content: {str(data)[:200]}")
        return content

    @staticmethod
    def _generate_content(data: dict) -> str:
        content = data.get("response") if isinstance(data, dict) else None
        if not isinstance(content, str):
            raise RuntimeError(f"Unexpected generate response shape: {str(data)[:200]}")
        return content

    def _post(self, url: str, payload: dict, extract) -> str:
        """POST with bounded retries on connection errors, returning extracted text."""
        masked = mask_url(url)
        r = None
        for attempt in range(self.max_retries + 1):
            try:
                logger.debug("Oracle POST %s payload: %s", masked, payload)
                r = requests.post(url, json=payload, timeout=self.request_timeout)
                logger.info(
                    "Oracle POST %s took %.2fs, response: %s",
                    masked,
                    r.elapsed.total_seconds(),
                    r.text[:200],
                )
            except requests.exceptions.RequestException as exc:
                logger.warning("Oracle POST failed on attempt %d: %s", attempt + 1, exc)
                if attempt < self.max_retries:
                    time.sleep(self.retry_backoff_sec)
                    continue
                raise

            if r.status_code == 200:
                break
            raise RuntimeError(
                f"Oracle POST failed with status {r.status_code}: {(r.text or '')[:200]} "
                f"(model={self.model}, url={masked})"
            )

        try:
            data = r.json()
        except ValueError as exc:
            raise RuntimeError(f"Oracle returned non-JSON response: {r.text[:200]}") from exc
        return extract(data)
