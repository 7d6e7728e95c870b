from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


class ScriptContent(BaseModel):
    script: str = ""

    model_config = ConfigDict(extra="forbid")


class QuestionContent(BaseModel):
    script: str = ""
    questions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("questions")
    @classmethod
    def _strip_blank_questions(cls, value: List[str]) -> List[str]:
        return [question.strip() for question in value if question and question.strip()]


class NotesContent(BaseModel):
    notes: str = ""

    model_config = ConfigDict(extra="forbid")


CONTENT_MODELS: dict[str, type[BaseModel]] = {
    "intro": ScriptContent,
    "outro": ScriptContent,
    "story": QuestionContent,
    "interview": QuestionContent,
    "break": NotesContent,
    "commercial": NotesContent,
    "music": NotesContent,
}


def validate_content(segment_type: str, payload: dict[str, Any] | None) -> dict[str, Any]:
    model = CONTENT_MODELS.get(segment_type)
    if model is None:
        raise ValidationError(f"unknown segment type: {segment_type}")
    try:
        return model.model_validate(payload or {}).model_dump()
    except PydanticValidationError as exc:
        raise ValidationError(f"invalid {segment_type} content: {exc}") from exc


def text_fields(content: dict[str, Any]) -> list[str]:
    fields = [content.get("script"), content.get("notes"), *content.get("questions", [])]
    return [value for value in fields if isinstance(value, str) and value]
