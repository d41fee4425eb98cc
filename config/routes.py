"""Route configuration for the generator and transcription endpoints."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field


class LlmRoute(BaseModel):
    """Chat-completion endpoint configuration."""

    name: str
    base_url: str
    endpoint: str = "/v1/chat/completions"
    model: str
    timeout_s: float = Field(default=30.0, ge=0.1)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    api_key_env: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class TranscriptionRoute(BaseModel):
    """Speech-to-text endpoint configuration."""

    name: str
    base_url: str
    endpoint: str = "/v1/audio/transcriptions"
    model: str
    timeout_s: float = Field(default=30.0, ge=0.1)
    api_key_env: str | None = None
    language: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseModel):
    """Application configuration root."""

    llm_routes: Dict[str, LlmRoute]
    transcription_routes: Dict[str, TranscriptionRoute] = Field(default_factory=dict)
    registry: Dict[str, str]


def load_config(path: Path) -> AppConfig:
    """Load configuration from disk."""

    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def resolve_route(cfg: AppConfig, target: str) -> LlmRoute:
    """Return the chat route bound to ``target`` in the registry map."""

    route_id = _route_id(cfg, target)
    if route_id not in cfg.llm_routes:
        raise KeyError(f"Route '{route_id}' missing for '{target}'")
    return cfg.llm_routes[route_id]


def resolve_transcription_route(cfg: AppConfig, target: str) -> Optional[TranscriptionRoute]:
    """Return the transcription route for ``target``; ``None`` when not configured."""

    route_id = cfg.registry.get(target)
    if route_id is None:
        return None
    if route_id not in cfg.transcription_routes:
        raise KeyError(f"Transcription route '{route_id}' missing for '{target}'")
    return cfg.transcription_routes[route_id]


def _route_id(cfg: AppConfig, target: str) -> str:
    if target not in cfg.registry:
        raise KeyError(f"Registry entry missing for '{target}'")
    return cfg.registry[target]
