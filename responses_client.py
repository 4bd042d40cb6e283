"""Blocking client for the OpenAI Responses API."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from console_loader import Loader
from response_text import ResponseParseError, extract_response_text

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT_SECONDS = 180.0
NETWORK_ERROR_PREFIX = "Ошибка сети: "


@dataclass(frozen=True)
class CompletionRequest:
    model: str
    input: str
    instructions: Optional[str] = None
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        """Request body; optional fields left as None are omitted, not sent as null."""
        payload: Dict[str, Any] = {"model": self.model, "input": self.input}
        if self.instructions is not None:
            payload["instructions"] = self.instructions
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.max_output_tokens is not None:
            payload["max_output_tokens"] = self.max_output_tokens
        return payload


def progress_label(temperature: Optional[float]) -> str:
    shown = "default" if temperature is None else temperature
    return f"Запрос к модели (temperature={shown})"


class ResponsesClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.model = model
        self.endpoint = f"{base_url.rstrip('/')}/responses"
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._http = http_client or httpx.Client(timeout=timeout)

    def request(
        self,
        input: str,
        instructions: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        show_progress: bool = True,
    ) -> str:
        """Send one request and return the answer text or a displayable error string.

        Transport failures and unparseable bodies are turned into error strings
        here so a single bad call only spoils the current turn.
        """
        body = CompletionRequest(
            model=self.model,
            input=input,
            instructions=instructions,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        ).to_payload()
        loader = Loader(progress_label(temperature)) if show_progress else None
        start = time.perf_counter()
        try:
            resp = self._http.post(self.endpoint, json=body, headers=self._headers)
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", self.endpoint, exc)
            return f"{NETWORK_ERROR_PREFIX}{type(exc).__name__}: {exc}"
        finally:
            if loader is not None:
                loader.stop()
        logger.debug(
            "POST %s temperature=%s -> %s in %.0fms (%d bytes)",
            self.endpoint,
            temperature,
            resp.status_code,
            (time.perf_counter() - start) * 1000,
            len(resp.content),
        )
        try:
            return extract_response_text(resp.text)
        except ResponseParseError as exc:
            logger.warning("Unparseable response (status %s): %s", resp.status_code, exc)
            return f"Ошибка: некорректный ответ API (HTTP {resp.status_code}: {exc})"

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ResponsesClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
