from __future__ import annotations

from functools import lru_cache

from openai import OpenAI

from app.settings import settings


@lru_cache
def get_client() -> OpenAI:
    if not settings.OPENAI_API_KEY:
        raise RuntimeError("OPENAI_API_KEY is not configured")
    return OpenAI(api_key=settings.OPENAI_API_KEY)


def transcribe_chunk(data: bytes, filename: str) -> str:
    """Transcribe one audio chunk; ``filename`` lets the API sniff the format."""
    transcription = get_client().audio.transcriptions.create(
        model=settings.OPENAI_MODEL_TRANSCRIBE,
        file=(filename, data),
    )
    if isinstance(transcription, str):
        return transcription
    return transcription.text or ""


def complete_json(system: str, user: str) -> str:
    """Run a deterministic chat completion in JSON-object mode and return the raw text."""
    completion = get_client().chat.completions.create(
        model=settings.OPENAI_MODEL_TEXT,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        response_format={"type": "json_object"},
        temperature=0,
    )
    return (completion.choices[0].message.content or "{}").strip()
