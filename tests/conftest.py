"""
Pytest Configuration and Fixtures
Global test configuration and reusable test fixtures
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

# Load .env.test before any other imports
from dotenv import load_dotenv
load_dotenv('.env.test')

# Override environment for tests
os.environ["ENVIRONMENT"] = "development"
os.environ["LOG_LEVEL"] = "ERROR"

import pytest
from unittest.mock import AsyncMock, patch

from chromalab.core.backend import (
    GeneratedImage,
    GenerativeBackend,
    GroundedSearchResult,
    GroundingSource,
)
from chromalab.core.config import IngestionConfig, PipelineConfig, reset_config
from chromalab.models.enums import AspectRatio, StylistRole
from chromalab.models.session import StylistRecord, StylistSession
from chromalab.services.analysis_service import AnalysisService
from chromalab.services.photo_ingestion_service import DisplayHandleRegistry, PhotoIngestor
from chromalab.services.planning_service import PlanningService


# ============================================================================
# Environment
# ============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    test_env = {
        "ENVIRONMENT": "development",
        "LOG_LEVEL": "ERROR",
        "GEMINI_API_KEY": "test-gemini-key-12345",
    }

    with patch.dict(os.environ, test_env):
        yield


@pytest.fixture(autouse=True)
def fresh_config():
    """Reset the global config between tests."""
    reset_config()
    yield
    reset_config()


# ============================================================================
# Sample generator payloads
# ============================================================================

@pytest.fixture
def sample_analysis_payload() -> Dict[str, Any]:
    """Analysis payload as the generator returns it."""
    return {
        "naturalLevel": "Level 6",
        "currentCosmeticLevel": "Level 7",
        "dominantUndertone": "Orange-Gold",
        "grayPercentage": "10%",
        "porosity": "High",
        "bandingZones": "root band",
        "riskFlags": "none",
        "stylistNotes": "use bond builder",
    }


@pytest.fixture
def sample_plan_payload() -> Dict[str, Any]:
    """Plan payload with only the tone section present."""
    return {
        "path": "corrective",
        "preLighten": None,
        "tone": {
            "shades": "9V",
            "ratio": "1:1",
            "developer": "10vol",
            "time": "10min",
        },
        "fashionOverlay": None,
        "steps": ["Apply toner"],
    }


@pytest.fixture
def sample_analysis_text(sample_analysis_payload) -> str:
    return json.dumps(sample_analysis_payload)


@pytest.fixture
def sample_plan_text(sample_plan_payload) -> str:
    return json.dumps(sample_plan_payload)


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Small JPEG-like payload (content is never sniffed)."""
    return b"\xff\xd8\xff\xe0" + b"\x00" * 64


# ============================================================================
# Fakes
# ============================================================================

class FakeBackend(GenerativeBackend):
    """
    GenerativeBackend whose capabilities are AsyncMocks.

    Instance attributes shadow the methods, so tests configure
    return_value / side_effect and assert awaits directly on them.
    """

    def __init__(self, analysis_text: str = "{}", plan_text: str = "{}"):
        self.analyze_photo = AsyncMock(return_value=analysis_text)
        self.generate_plan = AsyncMock(return_value=plan_text)
        self.generate_image = AsyncMock(
            return_value=GeneratedImage(data=b"generated", content_type="image/jpeg")
        )
        self.edit_image = AsyncMock(
            return_value=GeneratedImage(data=b"edited", content_type="image/png")
        )
        self.search_with_grounding = AsyncMock(
            return_value=GroundedSearchResult(
                text="Copper tones are trending.",
                sources=[GroundingSource(title="Salon Today", uri="https://example.com/a")],
            )
        )
        self.chat = AsyncMock(return_value="Use 20 vol on the mids.")
        self.close = AsyncMock()

    async def analyze_photo(self, payload: bytes, content_type: str) -> str:
        raise NotImplementedError

    async def generate_plan(self, analysis, target: str) -> str:
        raise NotImplementedError

    async def generate_image(self, prompt: str, aspect_ratio: AspectRatio = AspectRatio.SQUARE):
        raise NotImplementedError

    async def edit_image(self, payload: bytes, content_type: str, prompt: str):
        raise NotImplementedError

    async def search_with_grounding(self, query: str):
        raise NotImplementedError

    async def chat(self, context) -> str:
        raise NotImplementedError


@dataclass
class FakeUpload:
    """Upload object with a declared type and an in-memory body."""
    data: Optional[bytes] = b""
    content_type: Optional[str] = "image/jpeg"
    filename: Optional[str] = "client.jpg"
    error: Optional[Exception] = None
    is_async: bool = False

    def read(self):
        if self.is_async:
            return self._read_async()
        if self.error is not None:
            raise self.error
        return self.data

    async def _read_async(self):
        if self.error is not None:
            raise self.error
        return self.data


@pytest.fixture
def fake_backend(sample_analysis_text, sample_plan_text) -> FakeBackend:
    return FakeBackend(analysis_text=sample_analysis_text, plan_text=sample_plan_text)


@pytest.fixture
def make_upload(sample_image_bytes):
    """Factory for FakeUpload objects."""
    def _make(**kwargs) -> FakeUpload:
        kwargs.setdefault("data", sample_image_bytes)
        return FakeUpload(**kwargs)
    return _make


# ============================================================================
# Pipeline wiring
# ============================================================================

@pytest.fixture
def pipeline_config() -> PipelineConfig:
    """Pipeline config without the settle delay."""
    return PipelineConfig(settle_delay_seconds=0)


@pytest.fixture
def registry() -> DisplayHandleRegistry:
    return DisplayHandleRegistry()


@pytest.fixture
def ingestor(registry) -> PhotoIngestor:
    return PhotoIngestor(registry=registry, config=IngestionConfig())


@pytest.fixture
def analysis_service(fake_backend) -> AnalysisService:
    return AnalysisService(fake_backend)


@pytest.fixture
def planning_service(fake_backend, pipeline_config) -> PlanningService:
    return PlanningService(fake_backend, config=pipeline_config)


# ============================================================================
# Sessions
# ============================================================================

@pytest.fixture
def verified_session() -> StylistSession:
    record = StylistRecord(
        uid="stylist-1",
        email="ana@salon.com",
        display_name="Ana",
        role=StylistRole.STYLIST,
        is_verified=True,
        license_ref="licenses/stylist-1/license.jpg",
    )
    return StylistSession(record=record, session_id="session-123")


@pytest.fixture
def unverified_session() -> StylistSession:
    record = StylistRecord(
        uid="stylist-2",
        email="ben@salon.com",
        display_name="Ben",
    )
    return StylistSession(record=record, session_id="session-456")


# Pytest configuration hooks
def pytest_configure(config):
    """Pytest configuration hook."""
    config.addinivalue_line("markers", "integration: end-to-end pipeline tests")
