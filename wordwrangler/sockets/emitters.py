"""Socket.IO emitter helpers: the only place that calls socketio.emit().

Events mirror a row-level change feed: each carries the table name, the
kind of change and the affected row, and is scoped to the room named by the
game code. Clients treat them as a hint to refresh; polling
``GET /games/<code>`` stays the source of truth.
"""
import logging
from typing import Any
from ..extensions import socketio
from ..models.game import Game
from ..models.game_player import GamePlayer
from ..models.submission import Submission

logger = logging.getLogger(__name__)

ROW_CHANGED = "row_changed"


def emit_row_change(game_code: str, table: str, event: str, record: dict[str, Any]) -> None:
    """Broadcast one row change to every client in the game's room.

    Args:
        game_code: Room name.
        table: One of ``games``, ``game_players``, ``submissions``.
        event: ``INSERT``, ``UPDATE`` or ``DELETE``.
        record: The serialised row (or its key fields for deletes).
    """
    logger.debug("emit %s %s to room %s", event, table, game_code)
    socketio.emit(
        ROW_CHANGED,
        {"table": table, "event": event, "record": record},
        room=game_code,
    )


def emit_game_changed(game: Game, event: str = "UPDATE") -> None:
    """Broadcast a change to the Game row itself."""
    from ..services.state_service import game_dict
    emit_row_change(game.code, "games", event, game_dict(game))


def emit_game_player_changed(game: Game, game_player: GamePlayer, event: str) -> None:
    """Broadcast a membership or score change."""
    from ..services.state_service import game_player_dict
    emit_row_change(game.code, "game_players", event, game_player_dict(game_player))


def emit_game_player_removed(game: Game, player_id: int) -> None:
    emit_row_change(game.code, "game_players", "DELETE", {"game_id": game.id, "player_id": player_id})


def emit_submission_changed(game: Game, submission: Submission, event: str) -> None:
    """Broadcast a submission insert or update (content stays out of the payload)."""
    emit_row_change(
        game.code,
        "submissions",
        event,
        {
            "id": submission.id,
            "game_task_id": submission.game_task_id,
            "player_id": submission.player_id,
            "ai_score": submission.ai_score,
        },
    )


def emit_game_deleted(game_code: str, game_id: int) -> None:
    emit_row_change(game_code, "games", "DELETE", {"id": game_id, "code": game_code})
