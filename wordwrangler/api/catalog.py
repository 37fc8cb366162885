"""Read-only routes: the task catalog and the all-time leaderboards."""
from flask import Blueprint, jsonify
from ..services import game_service, leaderboard_service
from ..services.state_service import task_dict

catalog_bp = Blueprint("catalog", __name__)


@catalog_bp.route("/tasks", methods=["GET"])
def list_tasks():
    """GET /api/tasks — every task, by title."""
    return jsonify([task_dict(task) for task in game_service.list_tasks()]), 200


@catalog_bp.route("/leaderboards/players", methods=["GET"])
def player_leaderboard():
    """GET /api/leaderboards/players — all-time ranking over completed games."""
    return jsonify(leaderboard_service.all_time_players()), 200


@catalog_bp.route("/leaderboards/teams", methods=["GET"])
def team_leaderboard():
    """GET /api/leaderboards/teams — all-time team ranking over completed games."""
    return jsonify(leaderboard_service.all_time_teams()), 200
