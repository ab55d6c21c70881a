"""
Parsing, validation and previews for generated artifacts.

The model is asked for a single JSON object. Output wrapped in a markdown
code fence is unwrapped first; anything that still fails to parse, or that
does not fit the artifact schema, is an ArtifactFormatError and ends the job.
"""
from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from app.errors import ArtifactFormatError
from app.models import ArtifactType
from app.settings import settings


class _Artifact(BaseModel):
    model_config = ConfigDict(extra="allow")


class SummaryArtifact(_Artifact):
    title: str | None = None
    abstract: str | None = ""
    key_points: list[str] = []
    terms: list[str] = []


class OutlineSection(_Artifact):
    heading: str
    bullets: list[str] = []


class NotesArtifact(_Artifact):
    outline: list[OutlineSection] = []
    equations: list[str] = []
    references: list[str] = []


class QuizQuestion(_Artifact):
    type: Literal["mcq", "short", "true_false"]
    prompt: str
    choices: list[str] | None = None
    answer: str | bool
    rationale: str | None = None


class QuizArtifact(_Artifact):
    questions: list[QuizQuestion] = []


ARTIFACT_MODELS: dict[ArtifactType, type[_Artifact]] = {
    ArtifactType.summary: SummaryArtifact,
    ArtifactType.notes: NotesArtifact,
    ArtifactType.quiz: QuizArtifact,
}


def strip_code_fence(raw: str) -> str:
    s = raw.strip()
    if s.startswith("```"):
        first = s.find("\n")
        last = s.rfind("```")
        if first >= 0 and last > first:
            s = s[first + 1:last].strip()
    return s


def parse_model_json(raw: str) -> dict[str, Any]:
    try:
        data = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as e:
        raise ArtifactFormatError(f"Model output is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ArtifactFormatError("Model output is not a JSON object.")
    return data


def validate_artifact(kind: ArtifactType, data: dict[str, Any]) -> dict[str, Any]:
    try:
        model = ARTIFACT_MODELS[kind].model_validate(data)
    except ValidationError as e:
        raise ArtifactFormatError(f"Model output does not match the {kind.value} schema: {e}") from e
    return model.model_dump(mode="json")


def make_preview(kind: ArtifactType, data: dict[str, Any], limit: int | None = None) -> str:
    if kind is ArtifactType.summary:
        return str(data.get("abstract") or "")[: limit or settings.ARTIFACT_PREVIEW_CHARS]
    if kind is ArtifactType.notes:
        return f"Outline sections: {len(data.get('outline') or [])}"
    return f"Questions: {len(data.get('questions') or [])}"
