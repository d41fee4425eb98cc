"""Configuration package for the interview coach services."""
from .registry import GENERATOR_KEY, TRANSCRIBER_KEY, bind_model, clear_models, get_model
from .routes import AppConfig, LlmRoute, TranscriptionRoute, load_config, resolve_route, resolve_transcription_route
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "TranscriptionRoute",
    "load_config",
    "resolve_route",
    "resolve_transcription_route",
    "GENERATOR_KEY",
    "TRANSCRIBER_KEY",
    "bind_model",
    "clear_models",
    "get_model",
    "Settings",
    "settings",
]
