"""All /api/players/* REST routes."""
from flask import Blueprint, request, jsonify
from ..services import leaderboard_service, player_service
from ..services.state_service import player_dict
from ..errors import PlayerNotFoundError, ValidationError

players_bp = Blueprint("players", __name__)


@players_bp.route("/players", methods=["POST"])
def create_player():
    """POST /api/players — register a player; a known email returns that player."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    player, created = player_service.create_player(
        data.get("display_name"),
        avatar=data.get("avatar"),
        email=data.get("email"),
        team_id=data.get("team_id"),
    )
    return jsonify(player_dict(player)), 201 if created else 200


@players_bp.route("/players", methods=["GET"])
def list_players():
    """GET /api/players — all players by name, or ?email= for a returning-player lookup."""
    email = request.args.get("email")
    if email:
        player = player_service.find_by_email(email)
        if player is None:
            raise PlayerNotFoundError()
        return jsonify(player_dict(player)), 200
    return jsonify([player_dict(p) for p in player_service.list_players()]), 200


@players_bp.route("/players/<int:player_id>", methods=["GET"])
def get_player(player_id: int):
    """GET /api/players/<id> — player with lifetime stats and recent games."""
    player = player_service.get_player_or_404(player_id)
    return jsonify({**player_dict(player), **leaderboard_service.player_stats(player)}), 200


@players_bp.route("/players/<int:player_id>", methods=["PATCH"])
def update_player(player_id: int):
    """PATCH /api/players/<id> — change display name, avatar or team."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    player = player_service.get_player_or_404(player_id)
    player_service.update_player(player, data)
    return jsonify(player_dict(player)), 200
