"""AI text generation: the judging panel and the end-of-game reflection."""
from .client import AIServiceError, AIResponseError, generate_response

__all__ = ["AIServiceError", "AIResponseError", "generate_response"]
