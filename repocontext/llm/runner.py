"""Adapter around the Anthropic Messages API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
)

ChunkSink = Callable[[str], None]

ANTHROPIC_VERSION = "2023-06-01"


class LLMError(RuntimeError):
    """Raised when the text-generation backend fails."""


class TextGenerator(Protocol):
    """Anything that turns a prompt into generated text."""

    def run(self, prompt: str, *, on_chunk: ChunkSink | None = None) -> str:
        ...


@dataclass
class LLMRequest:
    """Represents a single generation request."""

    prompt: str
    model: str
    temperature: Optional[float]
    max_tokens: int
    base_url: str
    api_key: Optional[str]
    on_chunk: Optional[ChunkSink] = None


class LLMRunner:
    """Executes prompts against the Anthropic Messages API."""

    def __init__(
        self,
        model: str | None = None,
        *,
        api_key: str | None = None,
        base_url: str = DEFAULT_API_BASE_URL,
        temperature: Optional[float] = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.model = model or DEFAULT_MODEL
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._runner = runner or self._http_runner

    @property
    def model_name(self) -> str:
        return self.model

    def run(self, prompt: str, *, on_chunk: ChunkSink | None = None) -> str:
        """Send the prompt and return the generated text.

        When ``on_chunk`` is given the response is streamed and every text
        delta is forwarded to it as it arrives.
        """
        request = LLMRequest(
            prompt=prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            on_chunk=on_chunk,
        )
        return self._runner(request)

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        endpoint = f"{request.base_url}/messages"
        payload: dict[str, object] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        streaming = request.on_chunk is not None
        if streaming:
            payload["stream"] = True

        headers = {
            "Content-Type": "application/json",
            "anthropic-version": ANTHROPIC_VERSION,
        }
        if request.api_key:
            headers["x-api-key"] = request.api_key

        http_request = Request(
            endpoint,
            data=json.dumps(payload).encode("utf-8"),
            headers=headers,
            method="POST",
        )

        try:
            with urlopen(http_request) as response:  # type: ignore[arg-type]
                if streaming:
                    content = LLMRunner._consume_stream(response, request.on_chunk)
                else:
                    content = LLMRunner._parse_response(response.read())
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise LLMError(f"LLM request failed with status {exc.code}: {message}") from exc
        except URLError as exc:
            raise LLMError(f"LLM request failed: {exc.reason}") from exc

        if not content:
            raise LLMError("LLM returned an empty response")
        return content

    @staticmethod
    def _parse_response(raw: bytes) -> str:
        try:
            payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise LLMError("LLM returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise LLMError("LLM returned an unexpected payload")
        return LLMRunner._extract_content(payload)

    @staticmethod
    def _extract_content(payload: dict[str, object]) -> str:
        blocks = payload.get("content")
        if not isinstance(blocks, list):
            return ""
        parts = []
        for block in blocks:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if isinstance(text, str):
                    parts.append(text)
        return "".join(parts)

    @staticmethod
    def _consume_stream(lines: Iterable[bytes], on_chunk: ChunkSink | None) -> str:
        parts: list[str] = []
        for raw_line in lines:
            line = raw_line.decode("utf-8").strip()
            if not line.startswith("data:"):
                continue
            data = line[len("data:"):].strip()
            if not data:
                continue
            try:
                event = json.loads(data)
            except json.JSONDecodeError as exc:
                raise LLMError("LLM stream contained invalid JSON") from exc
            if not isinstance(event, dict):
                continue
            event_type = event.get("type")
            if event_type == "error":
                error = event.get("error")
                message = error.get("message") if isinstance(error, dict) else error
                raise LLMError(f"LLM stream failed: {message}")
            if event_type != "content_block_delta":
                continue
            delta = event.get("delta")
            if not isinstance(delta, dict):
                continue
            text = delta.get("text")
            if isinstance(text, str) and text:
                parts.append(text)
                if on_chunk is not None:
                    on_chunk(text)
        return "".join(parts)


__all__ = ["ChunkSink", "LLMError", "LLMRequest", "LLMRunner", "TextGenerator"]
