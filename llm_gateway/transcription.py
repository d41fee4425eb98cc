from __future__ import annotations  # Speech-to-text adapter for spoken interview answers

import logging
import os
from typing import Any, Callable, Dict, Optional

from config import TranscriptionRoute


logger = logging.getLogger(__name__)

Transcriber = Callable[[bytes], str]


class TranscriptionError(RuntimeError):  # Raised when audio cannot be turned into text
    pass


def transcribe(audio: bytes, *, cfg: TranscriptionRoute, client: Optional[Any] = None) -> str:  # Post audio to an OpenAI-compatible transcription endpoint
    if not audio:
        raise TranscriptionError("empty audio payload")
    headers: Dict[str, str] = {}
    if cfg.api_key_env:
        api_key = os.getenv(cfg.api_key_env)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)
    data: Dict[str, str] = {"model": cfg.model}
    if cfg.language:
        data["language"] = cfg.language
    files = {"file": ("answer.webm", audio, "application/octet-stream")}
    url = f"{cfg.base_url}{cfg.endpoint}"
    logger.info("transcription request route=%s bytes=%d", cfg.name, len(audio))
    try:
        if client is not None:
            response = client.post(url, data=data, files=files, headers=headers, timeout=cfg.timeout_s)
        else:
            import httpx

            with httpx.Client(timeout=cfg.timeout_s) as http_client:
                response = http_client.post(url, data=data, files=files, headers=headers)
    except Exception as exc:  # noqa: BLE001
        logger.error("transcription transport failure: %s", exc)
        raise TranscriptionError("transcription transport failed") from exc
    if response.status_code >= 400:
        raise TranscriptionError(f"transcription returned status {response.status_code}")
    try:
        payload = response.json()
    except Exception as exc:  # noqa: BLE001
        raise TranscriptionError("transcription payload was not JSON") from exc
    text = payload.get("text") if isinstance(payload, dict) else None
    if not isinstance(text, str) or not text.strip():
        raise TranscriptionError("transcription response missing text")
    return text.strip()


def transcriber(route: TranscriptionRoute, *, client: Optional[Any] = None) -> Transcriber:  # Bindable transcriber callable
    def _transcribe(audio: bytes) -> str:
        return transcribe(audio, cfg=route, client=client)

    return _transcribe


__all__ = ["Transcriber", "TranscriptionError", "transcribe", "transcriber"]
