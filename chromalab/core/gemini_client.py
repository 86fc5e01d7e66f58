"""
Low-level client for the Gemini REST API.

This module provides an httpx client for the generateContent and predict
endpoints. Throttled calls (HTTP 429) are retried with tenacity, honouring
Retry-After; every other failure is raised to the caller.
"""

import base64
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from chromalab.core.exceptions import (
    BackendResponseError,
    BackendTimeoutError,
    RateLimitError,
)
from chromalab.core.settings import settings
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class GeminiResponse:
    """
    Parsed generateContent response.

    Only the first candidate is kept; the raw body stays available for
    debugging.
    """
    model: str
    text: str = ""
    images: List[Tuple[str, bytes]] = field(default_factory=list)
    grounding_chunks: List[Dict[str, Any]] = field(default_factory=list)
    finish_reason: Optional[str] = None
    block_reason: Optional[str] = None
    latency_ms: int = 0
    raw_response: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (image bytes summarized by size)."""
        return {
            "model": self.model,
            "text": self.text,
            "images": [
                {"mime_type": mime, "size": len(data)}
                for mime, data in self.images
            ],
            "grounding_chunks": self.grounding_chunks,
            "finish_reason": self.finish_reason,
            "block_reason": self.block_reason,
            "latency_ms": self.latency_ms,
        }


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


class _WaitRetryAfter:
    """tenacity wait strategy: server's Retry-After when given, else backoff."""

    def __init__(self, fallback):
        self.fallback = fallback

    def __call__(self, retry_state) -> float:
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            error = outcome.exception()
            retry_after = getattr(error, "retry_after", None)
            if retry_after is not None:
                return retry_after
        return self.fallback(retry_state)


class GeminiClient:
    """
    Client for the Gemini REST API.

    Features:
    - Lazy httpx.AsyncClient creation
    - 429 throttling handled with tenacity (Retry-After aware)
    - Typed transport errors (timeout, rate limit, bad response)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: Gemini API key. If None, read from settings.
            base_url: REST base URL. If None, read from settings.
            timeout: Request timeout in seconds
            max_attempts: Attempts per call when throttled (1 disables retry)
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.base_url = (base_url or settings.gemini_api_base).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.max_attempts = max(
            1,
            max_attempts if max_attempts is not None else settings.rate_limit_max_attempts,
        )
        self._transport = transport

        # HTTP client
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={
                    "x-goog-api-key": self.api_key,
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def generate_content(
        self,
        model: str,
        contents: List[Dict[str, Any]],
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> GeminiResponse:
        """
        Call models/{model}:generateContent.

        Args:
            model: Model ID
            contents: Content list in Gemini format
            system_instruction: Optional system instruction text
            generation_config: Optional generationConfig block
            tools: Optional tool list (e.g. googleSearch)

        Returns:
            GeminiResponse for the first candidate

        Raises:
            BackendTimeoutError: On timeout
            RateLimitError: When still throttled after the last attempt
            BackendResponseError: For any other unusable response
        """
        payload: Dict[str, Any] = {"contents": contents}
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if generation_config:
            payload["generationConfig"] = generation_config
        if tools:
            payload["tools"] = tools

        start_time = time.time()
        data = await self._post(f"/models/{model}:generateContent", payload, model)
        latency_ms = int((time.time() - start_time) * 1000)

        return self._parse_generate_content(data, model, latency_ms)

    async def predict(
        self,
        model: str,
        instances: List[Dict[str, Any]],
        parameters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Call models/{model}:predict (Imagen). Returns the raw body."""
        payload: Dict[str, Any] = {"instances": instances}
        if parameters:
            payload["parameters"] = parameters
        return await self._post(f"/models/{model}:predict", payload, model)

    async def _post(self, path: str, payload: Dict[str, Any], model: str) -> Dict[str, Any]:
        """POST with throttling retry."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=_WaitRetryAfter(wait_exponential(multiplier=1, min=1, max=10)),
            retry=retry_if_exception_type(RateLimitError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._post_once(path, payload, model)
        raise BackendResponseError(f"No attempt made for {model}")

    async def _post_once(self, path: str, payload: Dict[str, Any], model: str) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.post(path, json=payload)
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(
                f"Request to {model} timed out after {self.timeout}s",
                details={"model": model},
            ) from e
        except httpx.HTTPError as e:
            raise BackendResponseError(
                f"Transport error calling {model}: {e}",
                details={"model": model},
            ) from e

        if response.status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(
                "Gemini request throttled",
                model=model,
                retry_after=retry_after,
            )
            raise RateLimitError(
                f"Rate limit exceeded for {model}",
                retry_after=retry_after,
                details={"model": model},
            )

        if response.status_code != 200:
            error_msg = response.text
            try:
                error_msg = response.json().get("error", {}).get("message", error_msg)
            except ValueError:
                pass
            raise BackendResponseError(
                f"API error ({response.status_code}) from {model}: {error_msg}",
                details={"status_code": response.status_code, "model": model},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendResponseError(
                f"Response from {model} is not JSON",
                details={"model": model},
            ) from e
        if not isinstance(data, dict):
            raise BackendResponseError(
                f"Unexpected response body from {model}",
                details={"model": model},
            )
        return data

    def _parse_generate_content(
        self,
        data: Dict[str, Any],
        model: str,
        latency_ms: int,
    ) -> GeminiResponse:
        """Parse a generateContent body into GeminiResponse."""
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        candidates = data.get("candidates") or []
        if not candidates:
            raise BackendResponseError(
                f"No candidates returned by {model}",
                details={"model": model, "block_reason": block_reason},
            )

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []

        texts: List[str] = []
        images: List[Tuple[str, bytes]] = []
        for part in parts:
            if "text" in part and not part.get("thought"):
                texts.append(part["text"])
            inline = part.get("inlineData")
            if inline and inline.get("data"):
                try:
                    images.append((
                        inline.get("mimeType", "image/png"),
                        base64.b64decode(inline["data"]),
                    ))
                except ValueError as e:
                    raise BackendResponseError(
                        f"Invalid inline image data from {model}",
                        details={"model": model},
                    ) from e

        grounding = candidate.get("groundingMetadata") or {}

        return GeminiResponse(
            model=model,
            text="".join(texts),
            images=images,
            grounding_chunks=grounding.get("groundingChunks") or [],
            finish_reason=candidate.get("finishReason"),
            block_reason=block_reason,
            latency_ms=latency_ms,
            raw_response=data,
        )

    async def __aenter__(self) -> "GeminiClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
