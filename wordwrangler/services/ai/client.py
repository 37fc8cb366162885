"""
Helper for interacting with the OpenAI API.

Every judge and reflection call goes through :func:`generate_response`, so
credentials, timeouts and error translation live in one place.
"""
import json
import logging
import re
from typing import Any

from flask import current_app
from openai import OpenAI, OpenAIError

__all__ = [
    "AIServiceError",
    "AIResponseError",
    "generate_response",
    "parse_json_object",
]

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class AIServiceError(RuntimeError):
    """Raised when the OpenAI API cannot be contacted or returns an error."""


class AIResponseError(ValueError):
    """Raised when the model answered but the content is not the expected JSON."""


def generate_response(
        system_prompt: str,
        user_prompt: str,
        model: str | None = None,
        max_tokens: int = 500,
        timeout: int | None = None,
) -> str:
    """
    Generate a response using the OpenAI chat completions API.

    Args:
        system_prompt: Instructions describing the persona and output format
        user_prompt: The material to respond to
        model: OpenAI model to use (default: JUDGE_MODEL from config)
        max_tokens: Upper bound on the completion length
        timeout: Request timeout in seconds (default: AI_TIMEOUT_SEC)

    Returns:
        The generated text, stripped

    Raises:
        AIServiceError: If the API key is missing or the API call fails
    """
    config = current_app.config
    api_key = config.get("OPENAI_API_KEY")
    if not api_key:
        raise AIServiceError("OPENAI_API_KEY environment variable must be set")

    model = model or config["JUDGE_MODEL"]
    timeout = timeout or config["AI_TIMEOUT_SEC"]

    try:
        client = OpenAI(api_key=api_key, base_url=config.get("OPENAI_BASE_URL"), timeout=timeout)

        response = client.chat.completions.create(
            model=model,
            max_tokens=max_tokens,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ])
    except OpenAIError as exc:
        raise AIServiceError(f"OpenAI API error: {exc}") from exc

    if not response.choices:
        raise AIServiceError("OpenAI API returned no choices")

    choice = response.choices[0]
    output_text = choice.message.content if choice.message else None
    if not output_text or not output_text.strip():
        logger.warning("OpenAI returned empty content. Model: %s, finish reason: %s", model, choice.finish_reason)
        raise AIServiceError("OpenAI API returned empty response content")

    return output_text.strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Decode a model reply that should be a single JSON object.

    Models sometimes wrap the object in a Markdown code fence despite being
    told not to; the fence is stripped before decoding.

    Raises:
        AIResponseError: If the text is not a JSON object.
    """
    cleaned = _CODE_FENCE.sub("", text.strip()).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise AIResponseError(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise AIResponseError("Response JSON is not an object")
    return data
