"""
Gemini implementation of the generative backend.

Maps the six backend capabilities onto Gemini REST calls through
GeminiClient. Model choice and generation settings come from the model
profiles in chromalab_config.yaml.
"""

import base64
import json
from typing import Any, Dict, List, Optional

from chromalab.core.backend import (
    ContextPayload,
    GeneratedImage,
    GenerativeBackend,
    GroundedSearchResult,
    GroundingSource,
)
from chromalab.core.config import ChromalabConfig, ModelProfile, get_config
from chromalab.core.exceptions import BackendResponseError, ConfigError
from chromalab.core.gemini_client import GeminiClient
from chromalab.models.analysis import HairAnalysis
from chromalab.models.enums import AspectRatio
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


class GeminiBackend(GenerativeBackend):
    """
    GenerativeBackend over the Gemini API.

    Usage:
        async with GeminiBackend() as backend:
            raw = await backend.analyze_photo(photo.payload, photo.content_type)
    """

    ANALYSIS_PROMPT = """You are an expert professional hair colorist. Diagnose the client's hair in this photo.
Respond ONLY with a single JSON object, no markdown, with exactly these string fields:
naturalLevel, currentCosmeticLevel, dominantUndertone, grayPercentage,
porosity (one of "Low", "Medium", "High"), bandingZones, riskFlags,
stylistNotes (a concise, actionable summary for the stylist).

Example:
{
  "naturalLevel": "Level 6 (Dark Blonde)",
  "currentCosmeticLevel": "Level 8 with brassy mids and ends",
  "dominantUndertone": "Orange-Gold",
  "grayPercentage": "About 10% at the temples",
  "porosity": "High",
  "bandingZones": "1 inch regrowth, 2 inch band of old color, lighter ends",
  "riskFlags": "Over-processed ends",
  "stylistNotes": "Use a bond builder. Neutralize gold with a violet-pearl toner."
}"""

    PLAN_PROMPT = """You are a master hair color formulator. Create a precise, professional, brand-agnostic color plan
for the client analysis and target color below. Respond ONLY with a single JSON object, no markdown.

Client hair analysis:
{analysis}

Target color:
{target}

Use parts for ratios (e.g. 1:1.5), volume for developer (e.g. 20 vol) and ranges for timing (e.g. 25-35 min).
Set any section that is not needed to null. "steps" must be an array of strings.

JSON structure:
{{
  "path": "Overall strategy",
  "preLighten": {{"product": "", "ratio": "", "zone": "", "time": "", "visualEndpoint": ""}} | null,
  "tone": {{"shades": "", "ratio": "", "developer": "", "time": ""}} | null,
  "fashionOverlay": {{"shades": "", "saturation": "", "time": ""}} | null,
  "steps": ["Step 1: ...", "Step 2: ..."]
}}"""

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        config: Optional[ChromalabConfig] = None,
    ):
        """
        Initialize GeminiBackend.

        Args:
            client: Optional GeminiClient (created lazily if None)
            config: Optional configuration (defaults to get_config())
        """
        self._client = client
        self._owns_client = client is None
        self._config = config or get_config()

    def _get_client(self) -> GeminiClient:
        """Get or create the Gemini client."""
        if self._client is None:
            self._client = GeminiClient()
        return self._client

    def _profile(self, name: str) -> ModelProfile:
        profile = self._config.get_model_profile(name)
        if profile is None or not profile.model:
            raise ConfigError(f"No model configured for '{name}'")
        return profile

    @staticmethod
    def _generation_config(profile: ModelProfile, **extra: Any) -> Dict[str, Any]:
        config: Dict[str, Any] = {}
        if profile.temperature is not None:
            config["temperature"] = profile.temperature
        if profile.response_mime_type:
            config["responseMimeType"] = profile.response_mime_type
        if profile.thinking_budget is not None:
            config["thinkingConfig"] = {"thinkingBudget": profile.thinking_budget}
        config.update(extra)
        return config

    @staticmethod
    def _inline_image(payload: bytes, content_type: str) -> Dict[str, Any]:
        return {
            "inlineData": {
                "mimeType": content_type,
                "data": base64.b64encode(payload).decode("ascii"),
            }
        }

    async def analyze_photo(self, payload: bytes, content_type: str) -> str:
        profile = self._profile("analysis")
        response = await self._get_client().generate_content(
            model=profile.model,
            contents=[{
                "role": "user",
                "parts": [
                    self._inline_image(payload, content_type),
                    {"text": self.ANALYSIS_PROMPT},
                ],
            }],
            generation_config=self._generation_config(profile),
        )
        logger.debug(
            "Analysis response received",
            model=profile.model,
            latency_ms=response.latency_ms,
            finish_reason=response.finish_reason,
        )
        return response.text

    async def generate_plan(self, analysis: HairAnalysis, target: str) -> str:
        profile = self._profile("planning")
        prompt = self.PLAN_PROMPT.format(
            analysis=json.dumps(analysis.to_dict(), indent=2),
            target=target,
        )
        response = await self._get_client().generate_content(
            model=profile.model,
            contents=[{"role": "user", "parts": [{"text": prompt}]}],
            generation_config=self._generation_config(profile),
        )
        logger.debug(
            "Plan response received",
            model=profile.model,
            latency_ms=response.latency_ms,
            finish_reason=response.finish_reason,
        )
        return response.text

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: AspectRatio = AspectRatio.SQUARE,
    ) -> GeneratedImage:
        profile = self._profile("image_generation")
        data = await self._get_client().predict(
            model=profile.model,
            instances=[{"prompt": prompt}],
            parameters={
                "sampleCount": 1,
                "aspectRatio": aspect_ratio.value,
                "outputOptions": {"mimeType": "image/jpeg"},
            },
        )
        predictions = data.get("predictions") or []
        for prediction in predictions:
            encoded = prediction.get("bytesBase64Encoded")
            if encoded:
                return GeneratedImage(
                    data=base64.b64decode(encoded),
                    content_type=prediction.get("mimeType", "image/jpeg"),
                )
        raise BackendResponseError(
            "No image was generated",
            details={"model": profile.model},
        )

    async def edit_image(
        self,
        payload: bytes,
        content_type: str,
        prompt: str,
    ) -> GeneratedImage:
        profile = self._profile("image_edit")
        response = await self._get_client().generate_content(
            model=profile.model,
            contents=[{
                "role": "user",
                "parts": [
                    self._inline_image(payload, content_type),
                    {"text": prompt},
                ],
            }],
            generation_config=self._generation_config(
                profile, responseModalities=["IMAGE"]
            ),
        )
        if not response.images:
            raise BackendResponseError(
                "No edited image was returned",
                details={"model": profile.model, "finish_reason": response.finish_reason},
            )
        mime_type, data = response.images[0]
        return GeneratedImage(data=data, content_type=mime_type)

    async def search_with_grounding(self, query: str) -> GroundedSearchResult:
        profile = self._profile("search")
        response = await self._get_client().generate_content(
            model=profile.model,
            contents=[{"role": "user", "parts": [{"text": query}]}],
            generation_config=self._generation_config(profile) or None,
            tools=[{"googleSearch": {}}],
        )
        sources: List[GroundingSource] = []
        for chunk in response.grounding_chunks:
            web = chunk.get("web") or {}
            uri = web.get("uri")
            if uri:
                sources.append(GroundingSource(title=web.get("title") or uri, uri=uri))
        return GroundedSearchResult(text=response.text, sources=sources)

    async def chat(self, context: ContextPayload) -> str:
        profile = self._profile("chat")
        response = await self._get_client().generate_content(
            model=profile.model,
            contents=[m.to_llm_format() for m in context.messages],
            system_instruction=context.system_instruction,
            generation_config=self._generation_config(profile) or None,
        )
        return response.text

    async def close(self) -> None:
        """Close the Gemini client if this backend created it."""
        if self._client and self._owns_client:
            await self._client.close()
            self._client = None

    async def __aenter__(self) -> "GeminiBackend":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
