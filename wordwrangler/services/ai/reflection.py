"""End-of-game reflection written from the full submission history."""
from typing import Any
from flask import current_app
from pydantic import BaseModel, Field, ValidationError

from . import client
from .client import AIResponseError
from .prompts import REFLECTION_SYSTEM_PROMPT, build_reflection_prompt


class Insight(BaseModel):
    title: str = Field(..., min_length=1)
    observation: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)


class NotableSubmission(BaseModel):
    task_title: str
    player: str
    submission_excerpt: str
    why_notable: str = ""


class Reflection(BaseModel):
    """The stored reflection payload."""

    opening_observation: str = Field(..., min_length=1)
    insights: list[Insight] = Field(..., min_length=1, max_length=3)
    closing_provocation: str = Field(..., min_length=1)
    top_submissions_to_discuss: list[NotableSubmission] = Field(default_factory=list, max_length=3)


def generate(player_count: int, rounds_played: int, submissions: list[dict[str, Any]]) -> Reflection:
    """Request and validate a reflection.

    Raises:
        AIServiceError: If the API call fails.
        AIResponseError: If the reply does not match the Reflection schema.
    """
    prompt = build_reflection_prompt(player_count, rounds_played, submissions)
    text = client.generate_response(
        REFLECTION_SYSTEM_PROMPT,
        prompt,
        model=current_app.config["REFLECTION_MODEL"],
        max_tokens=2000,
    )
    data = client.parse_json_object(text)
    try:
        return Reflection.model_validate(data)
    except ValidationError as exc:
        raise AIResponseError(f"Reflection did not match schema: {exc}") from exc
