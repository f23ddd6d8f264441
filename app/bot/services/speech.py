"""
Purpose: text-to-speech for voice-note replies.
OpenAI TTS renders straight to Ogg/Opus, which chat apps accept as a voice
note, so no separate transcoding step is needed.
"""

from __future__ import annotations
from typing import Any

MAX_TTS_CHARS = 1200


def synthesize_voice_note(
    text: str,
    llm: Any,
    *,
    voice: str = "alloy",
    model: str = "gpt-4o-mini-tts",
    max_chars: int = MAX_TTS_CHARS,
) -> bytes:
    """
    Return Ogg/Opus bytes for `text`. Tries streaming path; falls back to
    non-streaming. Empty text gives b"".
    """
    safe = (text or "").strip()
    if not safe:
        return b""
    if len(safe) > max_chars:
        safe = safe[: max_chars - 1].rstrip() + "…"

    client = getattr(llm, "client", llm)

    try:
        with client.audio.speech.with_streaming_response.create(
            model=model, voice=voice, input=safe, response_format="opus"
        ) as resp:
            return resp.read()
    except AttributeError:
        pass

    resp = client.audio.speech.create(
        model=model, voice=voice, input=safe, response_format="opus"
    )
    if hasattr(resp, "read"):
        return resp.read()
    return resp.content
