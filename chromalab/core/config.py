"""
Configuration loading and management.

This module loads the pipeline configuration from YAML: model profiles
per generative capability, pipeline timing, ingestion limits, assistant
and license settings.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import os
import yaml

from chromalab.models.target import AUTO_TARGET_DESCRIPTION


@dataclass
class ModelProfile:
    """
    Configuration profile for one generative capability.

    Values loaded from config/chromalab_config.yaml
    """
    name: str
    model: str = ""
    temperature: Optional[float] = None
    response_mime_type: Optional[str] = None
    thinking_budget: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "model": self.model,
            "temperature": self.temperature,
            "response_mime_type": self.response_mime_type,
            "thinking_budget": self.thinking_budget,
        }

    @classmethod
    def from_dict(
        cls,
        name: str,
        data: Dict[str, Any],
        base: Optional["ModelProfile"] = None,
    ) -> "ModelProfile":
        """Create from dictionary, falling back to base for missing keys."""
        base = base or cls(name=name)
        return cls(
            name=name,
            model=data.get("model", base.model),
            temperature=data.get("temperature", base.temperature),
            response_mime_type=data.get("response_mime_type", base.response_mime_type),
            thinking_budget=data.get("thinking_budget", base.thinking_budget),
        )


def _default_model_profiles() -> Dict[str, ModelProfile]:
    return {
        "analysis": ModelProfile(
            name="analysis",
            model="gemini-2.5-flash",
            response_mime_type="application/json",
        ),
        "planning": ModelProfile(
            name="planning",
            model="gemini-2.5-pro",
            response_mime_type="application/json",
            thinking_budget=32768,
        ),
        "image_generation": ModelProfile(name="image_generation", model="imagen-4.0-generate-001"),
        "image_edit": ModelProfile(name="image_edit", model="gemini-2.5-flash-image"),
        "search": ModelProfile(name="search", model="gemini-2.5-flash"),
        "chat": ModelProfile(name="chat", model="gemini-2.5-flash", temperature=0.4),
    }


@dataclass
class PipelineConfig:
    """Guided auto-plan pipeline settings."""
    # Pause in PROCESSING so the step indicator is visible before analysis
    settle_delay_seconds: float = 0.5
    auto_target_description: str = AUTO_TARGET_DESCRIPTION


@dataclass
class IngestionConfig:
    """Photo ingestion limits."""
    max_photo_bytes: int = 10 * 1024 * 1024
    allowed_type_prefix: str = "image/"


@dataclass
class AssistantConfig:
    """Assistant chat settings."""
    max_history_turns: int = 20
    greeting: str = "Hello! I'm your Chromalab Assistant. How can I help you with this color plan?"


@dataclass
class LicenseConfig:
    """License upload limits."""
    max_license_bytes: int = 5 * 1024 * 1024
    allowed_type_prefix: str = "image/"


@dataclass
class ChromalabConfig:
    """
    Complete configuration for the Chromalab core.

    Aggregates the model profiles and the per-component settings.
    """
    model_profiles: Dict[str, ModelProfile] = field(default_factory=_default_model_profiles)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    license: LicenseConfig = field(default_factory=LicenseConfig)

    def get_model_profile(self, name: str) -> Optional[ModelProfile]:
        """Get model profile for a capability."""
        return self.model_profiles.get(name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "model_profiles": {
                name: profile.to_dict()
                for name, profile in self.model_profiles.items()
            },
            "pipeline": {
                "settle_delay_seconds": self.pipeline.settle_delay_seconds,
                "auto_target_description": self.pipeline.auto_target_description,
            },
            "ingestion": {
                "max_photo_bytes": self.ingestion.max_photo_bytes,
                "allowed_type_prefix": self.ingestion.allowed_type_prefix,
            },
            "assistant": {
                "max_history_turns": self.assistant.max_history_turns,
                "greeting": self.assistant.greeting,
            },
            "license": {
                "max_license_bytes": self.license.max_license_bytes,
                "allowed_type_prefix": self.license.allowed_type_prefix,
            },
        }


# Global config instance
_config: Optional[ChromalabConfig] = None


def load_config(config_path: Optional[str] = None) -> ChromalabConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses CHROMALAB_CONFIG_PATH
            or the default location.

    Returns:
        Loaded ChromalabConfig instance.
    """
    global _config

    if config_path is None:
        config_path = os.environ.get(
            "CHROMALAB_CONFIG_PATH",
            str(Path(__file__).parent.parent.parent / "config" / "chromalab_config.yaml"),
        )

    config_file = Path(config_path)

    if not config_file.exists():
        # Return default config if file doesn't exist
        _config = ChromalabConfig()
        return _config

    with open(config_file, "r") as f:
        data = yaml.safe_load(f) or {}

    # Parse model profiles on top of the defaults
    model_profiles = _default_model_profiles()
    for name, profile_data in (data.get("model_profiles") or {}).items():
        model_profiles[name] = ModelProfile.from_dict(
            name, profile_data or {}, base=model_profiles.get(name)
        )

    pipeline_data = data.get("pipeline") or {}
    pipeline = PipelineConfig(
        settle_delay_seconds=pipeline_data.get("settle_delay_seconds", 0.5),
        auto_target_description=pipeline_data.get(
            "auto_target_description", AUTO_TARGET_DESCRIPTION
        ),
    )

    ingestion_data = data.get("ingestion") or {}
    ingestion = IngestionConfig(
        max_photo_bytes=ingestion_data.get("max_photo_bytes", IngestionConfig.max_photo_bytes),
        allowed_type_prefix=ingestion_data.get("allowed_type_prefix", "image/"),
    )

    assistant_data = data.get("assistant") or {}
    assistant = AssistantConfig(
        max_history_turns=assistant_data.get("max_history_turns", 20),
        greeting=assistant_data.get("greeting", AssistantConfig.greeting),
    )

    license_data = data.get("license") or {}
    license_config = LicenseConfig(
        max_license_bytes=license_data.get("max_license_bytes", LicenseConfig.max_license_bytes),
        allowed_type_prefix=license_data.get("allowed_type_prefix", "image/"),
    )

    _config = ChromalabConfig(
        model_profiles=model_profiles,
        pipeline=pipeline,
        ingestion=ingestion,
        assistant=assistant,
        license=license_config,
    )

    return _config


def get_config() -> ChromalabConfig:
    """
    Get the current configuration.

    Loads default config if not already loaded.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_model_profile(name: str) -> Optional[ModelProfile]:
    """
    Get model profile for a capability.

    Args:
        name: Capability name (analysis, planning, image_generation,
            image_edit, search, chat)
    """
    return get_config().get_model_profile(name)


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    _config = None
