from __future__ import annotations  # Re-export llm_gateway public API

from .fallback import Generation, Parsed, ParseResult, Unparsed, generate_with_fallback, parse_structured, try_generate
from .gateway import LlmGatewayError, TextGenerator, coerce_messages, complete, text_generator
from .transcription import Transcriber, TranscriptionError, transcribe, transcriber

__all__ = [
    "Generation",
    "LlmGatewayError",
    "Parsed",
    "ParseResult",
    "TextGenerator",
    "Transcriber",
    "TranscriptionError",
    "Unparsed",
    "coerce_messages",
    "complete",
    "generate_with_fallback",
    "parse_structured",
    "text_generator",
    "transcribe",
    "transcriber",
    "try_generate",
]
