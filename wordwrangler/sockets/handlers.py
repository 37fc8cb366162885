"""Socket.IO event handlers."""
from flask import request
from flask_socketio import join_room, leave_room, emit
from ..extensions import socketio, db
from ..models.game import Game


@socketio.on("join_game_room")
def handle_join_game_room(data: dict) -> None:
    """Subscribe the client to change events for one game.

    Replies to the caller only with ``game_state`` (the full game view) so a
    freshly connected display does not have to wait for the first poll.

    Args:
        data: Dict containing game_code.
    """
    game_code = ((data or {}).get("game_code") or "").upper()
    if not game_code:
        emit("room_error", {"error": "VALIDATION_ERROR", "message": "game_code is required."})
        return

    game = db.session.execute(
        db.select(Game).where(Game.code == game_code)
    ).scalar_one_or_none()
    if game is None:
        emit("room_error", {"error": "GAME_NOT_FOUND", "message": "Game not found."})
        return

    join_room(game_code)

    from ..services.state_service import build_game_state_payload
    emit("game_state", build_game_state_payload(game), to=request.sid)


@socketio.on("leave_game_room")
def handle_leave_game_room(data: dict) -> None:
    """Stop receiving change events for a game.

    Args:
        data: Dict containing game_code.
    """
    game_code = ((data or {}).get("game_code") or "").upper()
    if game_code:
        leave_room(game_code)
