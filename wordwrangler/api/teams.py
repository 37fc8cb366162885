"""All /api/teams/* REST routes."""
from flask import Blueprint, request, jsonify
from ..services import leaderboard_service, team_service
from ..services.state_service import player_dict, team_dict

teams_bp = Blueprint("teams", __name__)


@teams_bp.route("/teams", methods=["GET"])
def list_teams():
    """GET /api/teams — every team with its member count."""
    return jsonify([
        {**team_dict(team), "member_count": count}
        for team, count in team_service.list_teams()
    ]), 200


@teams_bp.route("/teams", methods=["POST"])
def create_team():
    """POST /api/teams — create a team; an existing name returns that team."""
    data = request.get_json(silent=True) or {}
    team, created = team_service.create_team(data.get("name") if isinstance(data, dict) else None)
    return jsonify(team_dict(team)), 201 if created else 200


@teams_bp.route("/teams/<int:team_id>", methods=["GET"])
def get_team(team_id: int):
    """GET /api/teams/<id> — team with members and stats."""
    team = team_service.get_team_or_404(team_id)
    return jsonify({
        **team_dict(team),
        "members": [player_dict(member) for member in team.members],
        "stats": leaderboard_service.team_stats(team),
    }), 200


@teams_bp.route("/teams/<int:team_id>", methods=["DELETE"])
def delete_team(team_id: int):
    """DELETE /api/teams/<id> — unassign members and delete."""
    team = team_service.get_team_or_404(team_id)
    team_service.delete_team(team)
    return jsonify({"success": True}), 200
