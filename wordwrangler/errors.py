"""Custom exception classes and Flask error handlers."""
from flask import jsonify
from typing import Any


class AppError(Exception):
    """Base application error with a machine-readable code and HTTP status."""

    def __init__(self, code: str, message: str, status: int = 400) -> None:
        """Initialise the error.

        Args:
            code: Machine-readable error code.
            message: Human-readable description.
            status: HTTP status code.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}


class ValidationError(AppError):
    """Raised when request data fails validation."""

    def __init__(self, message: str) -> None:
        super().__init__("VALIDATION_ERROR", message, 400)


class GameNotFoundError(AppError):
    """Raised when a game with the given code does not exist."""

    def __init__(self) -> None:
        super().__init__("GAME_NOT_FOUND", "Game not found.", 404)


class PlayerNotFoundError(AppError):
    """Raised when a player id does not match any player."""

    def __init__(self) -> None:
        super().__init__("PLAYER_NOT_FOUND", "Player not found.", 404)


class NotInGameError(AppError):
    """Raised when a player exists but has not joined the game."""

    def __init__(self) -> None:
        super().__init__("PLAYER_NOT_IN_GAME", "Player not found in game.", 404)


class TaskNotFoundError(AppError):
    """Raised when a task id does not match any task."""

    def __init__(self) -> None:
        super().__init__("TASK_NOT_FOUND", "Task not found.", 404)


class TeamNotFoundError(AppError):
    """Raised when a team id does not match any team."""

    def __init__(self) -> None:
        super().__init__("TEAM_NOT_FOUND", "Team not found.", 404)


class ReflectionNotFoundError(AppError):
    """Raised when a game has no stored reflection yet."""

    def __init__(self) -> None:
        super().__init__("REFLECTION_NOT_FOUND", "No reflection available.", 404)


class PhaseMismatchError(AppError):
    """Raised when an action is not valid for the current game status."""

    def __init__(self, message: str = "Action not valid for the current game status.") -> None:
        super().__init__("PHASE_MISMATCH", message, 409)


class ConcurrencyError(AppError):
    """Raised when an optimistic-locked write keeps losing races."""

    def __init__(self) -> None:
        super().__init__(
            "CONCURRENCY_CONFLICT",
            "The game was updated by someone else. Please retry.",
            409,
        )


class GenerationError(AppError):
    """Raised when the text-generation service fails to produce a usable result."""

    def __init__(self) -> None:
        super().__init__(
            "GENERATION_FAILED",
            "Could not generate a response right now. Please retry.",
            502,
        )


def register_error_handlers(app: Any) -> None:
    """Register error handlers on the Flask app.

    Args:
        app: The Flask application instance.
    """

    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        return jsonify(err.to_dict()), err.status

    @app.errorhandler(400)
    def handle_400(err):
        return jsonify({"error": "BAD_REQUEST", "message": "Malformed request."}), 400

    @app.errorhandler(404)
    def handle_404(err):
        return jsonify({"error": "NOT_FOUND", "message": "The requested resource was not found."}), 404

    @app.errorhandler(405)
    def handle_405(err):
        return jsonify({"error": "METHOD_NOT_ALLOWED", "message": "Method not allowed."}), 405

    @app.errorhandler(500)
    def handle_500(err):
        app.logger.exception("Unhandled error: %s", err)
        return jsonify({"error": "INTERNAL_ERROR", "message": "An internal server error occurred."}), 500
