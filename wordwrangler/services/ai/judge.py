"""The two-voice judging panel for a single submission."""
from flask import current_app
from pydantic import BaseModel, Field, ValidationError, field_validator

from . import client
from .client import AIResponseError
from .prompts import JUDGE_SYSTEM_PROMPT, build_judge_prompt

FALLBACK_ALEX_QUOTE = "I've noted that this submission exists."
FALLBACK_GREG_QUOTE = "I'm having technical difficulties. Which is somehow your fault."


class Judgment(BaseModel):
    """Parsed verdict for one submission."""

    alex_says: str = Field(..., min_length=1)
    greg_says: str = Field(..., min_length=1)
    score: int
    score_reason: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        """Round and clamp to 1..5; the model occasionally strays outside the scale."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        return max(1, min(5, round(value)))


def judge_submission(
    task_title: str,
    task_description: str,
    judging_criteria: str | None,
    player_name: str,
    content: str,
) -> Judgment:
    """Ask the model to judge one submission.

    Raises:
        AIServiceError: If the API call fails.
        AIResponseError: If the reply is not a valid judgment.
    """
    prompt = build_judge_prompt(task_title, task_description, judging_criteria, player_name, content)
    text = client.generate_response(
        JUDGE_SYSTEM_PROMPT,
        prompt,
        model=current_app.config["JUDGE_MODEL"],
        max_tokens=500,
    )
    data = client.parse_json_object(text)
    try:
        return Judgment.model_validate(data)
    except ValidationError as exc:
        raise AIResponseError(f"Judgment did not match schema: {exc}") from exc
