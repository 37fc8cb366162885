"""All /api/games/* REST routes."""
from flask import Blueprint, current_app, request, jsonify
from ..models.game import Game, GameStatus
from ..services import (
    game_service,
    leaderboard_service,
    reflection_service,
    round_service,
    scoring_service,
    submission_service,
)
from ..services.state_service import (
    build_game_state_payload,
    game_dict,
    game_player_dict,
    game_task_dict,
    submission_dict,
    task_dict,
)
from ..errors import ValidationError
from ..utils.validation import optional_int, optional_text, require_int
from ..sockets.emitters import (
    emit_game_changed,
    emit_game_deleted,
    emit_game_player_changed,
    emit_game_player_removed,
    emit_submission_changed,
)

games_bp = Blueprint("games", __name__)


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def _maybe_schedule_reflection(game: Game) -> None:
    """Kick off reflection generation when a game has just entered ``reflection``."""
    if game.status == GameStatus.REFLECTION and current_app.config["REFLECTION_AUTOSTART"]:
        reflection_service.schedule_generation(
            current_app._get_current_object(), game.id, notify=emit_game_changed
        )


# ---------------------------------------------------------------------------
# Create / list / fetch / patch / delete
# ---------------------------------------------------------------------------

@games_bp.route("/games", methods=["POST"])
def create_game():
    """POST /api/games — create a new game in the lobby."""
    data = _body()
    config = current_app.config
    facilitator_name = optional_text(data.get("facilitator_name"), "facilitator_name", config["MAX_DISPLAY_NAME_LENGTH"])
    total_rounds = optional_int(data.get("total_rounds"), "total_rounds", 1, config["MAX_TOTAL_ROUNDS"])
    timer_seconds = optional_int(data.get("timer_seconds"), "timer_seconds", 1, config["MAX_TIMER_SECONDS"])

    game = game_service.create_game(
        facilitator_name=facilitator_name,
        total_rounds=total_rounds or config["DEFAULT_TOTAL_ROUNDS"],
        timer_seconds=timer_seconds or config["DEFAULT_TIMER_SECONDS"],
    )
    return jsonify(build_game_state_payload(game)), 201


@games_bp.route("/games", methods=["GET"])
def list_games():
    """GET /api/games — recent games, optionally filtered by ?status=."""
    status = None
    raw_status = request.args.get("status")
    if raw_status:
        try:
            status = GameStatus(raw_status)
        except ValueError:
            raise ValidationError(f"Invalid status: {raw_status!r}.") from None
    limit = request.args.get("limit", default=20, type=int)
    limit = max(1, min(limit, 100))

    games = game_service.list_games(status=status, limit=limit)
    return jsonify([{**game_dict(game), "player_count": count} for game, count in games]), 200


@games_bp.route("/games/<code>", methods=["GET"])
def get_game(code: str):
    """GET /api/games/<code> — full game view shared by every client role."""
    game = game_service.get_game_or_404(code)
    return jsonify(build_game_state_payload(game)), 200


@games_bp.route("/games/<code>", methods=["PATCH"])
def update_game(code: str):
    """PATCH /api/games/<code> — raw field update, validated but without side effects."""
    game = game_service.get_game_or_404(code)
    game_service.update_game(game, _body())
    emit_game_changed(game)
    _maybe_schedule_reflection(game)
    return jsonify(game_dict(game)), 200


@games_bp.route("/games/<code>", methods=["DELETE"])
def delete_game(code: str):
    """DELETE /api/games/<code> — administrative hard delete."""
    game = game_service.get_game_or_404(code)
    game_code, game_id = game.code, game.id
    game_service.delete_game(game)
    emit_game_deleted(game_code, game_id)
    return jsonify({"success": True}), 200


# ---------------------------------------------------------------------------
# Join / leave
# ---------------------------------------------------------------------------

@games_bp.route("/games/<code>/join", methods=["POST"])
def join_game(code: str):
    """POST /api/games/<code>/join — idempotent join; a repeat returns the existing seat."""
    data = _body()
    player_id = require_int(data.get("player_id"), "player_id", 1)
    game = game_service.get_game_or_404(code)

    game_player, created = game_service.join_game(game, player_id)
    if created:
        emit_game_player_changed(game, game_player, "INSERT")
    return jsonify(game_player_dict(game_player)), 201 if created else 200


@games_bp.route("/games/<code>/join", methods=["DELETE"])
def leave_game(code: str):
    """DELETE /api/games/<code>/join — leave a game before it starts."""
    data = _body()
    player_id = require_int(data.get("player_id"), "player_id", 1)
    game = game_service.get_game_or_404(code)

    game_service.leave_game(game, player_id)
    emit_game_player_removed(game, player_id)
    return jsonify({"success": True}), 200


# ---------------------------------------------------------------------------
# State machine actions
# ---------------------------------------------------------------------------

@games_bp.route("/games/<code>/start", methods=["POST"])
def start_game(code: str):
    """POST /api/games/<code>/start — lobby to round 1."""
    game = game_service.get_game_or_404(code)
    round_service.start_game(game)
    emit_game_changed(game)
    return jsonify(build_game_state_payload(game)), 200


@games_bp.route("/games/<code>/end-round", methods=["POST"])
def end_round(code: str):
    """POST /api/games/<code>/end-round — close submissions; ``{"auto": true}`` on timer expiry."""
    data = _body()
    game = game_service.get_game_or_404(code)
    round_service.end_round(game, auto=bool(data.get("auto", False)))
    emit_game_changed(game)
    return jsonify(build_game_state_payload(game)), 200


@games_bp.route("/games/<code>/finish-judging", methods=["POST"])
def finish_judging(code: str):
    """POST /api/games/<code>/finish-judging — show the leaderboard (``{"skipped": true}`` to skip scoring)."""
    data = _body()
    game = game_service.get_game_or_404(code)
    round_service.finish_judging(game, skipped=bool(data.get("skipped", False)))
    emit_game_changed(game)
    return jsonify(build_game_state_payload(game)), 200


@games_bp.route("/games/<code>/next-round", methods=["POST"])
def next_round(code: str):
    """POST /api/games/<code>/next-round — next round, or the reflection after the last one."""
    game = game_service.get_game_or_404(code)
    round_service.next_round(game)
    emit_game_changed(game)
    _maybe_schedule_reflection(game)
    return jsonify(build_game_state_payload(game)), 200


@games_bp.route("/games/<code>/show-winner", methods=["POST"])
def show_winner(code: str):
    """POST /api/games/<code>/show-winner — reflection to completed."""
    game = game_service.get_game_or_404(code)
    round_service.show_winner(game)
    emit_game_changed(game)
    return jsonify(build_game_state_payload(game)), 200


@games_bp.route("/games/<code>/end", methods=["POST"])
def end_game(code: str):
    """POST /api/games/<code>/end — force the game to completed from any status."""
    game = game_service.get_game_or_404(code)
    round_service.end_game(game)
    emit_game_changed(game)
    return jsonify(build_game_state_payload(game)), 200


@games_bp.route("/games/<code>/timer", methods=["POST"])
def control_timer(code: str):
    """POST /api/games/<code>/timer — start, pause, resume, add, reset or configure."""
    data = _body()
    action = data.get("action")
    if not isinstance(action, str):
        raise ValidationError("action is required.")
    game = game_service.get_game_or_404(code)
    round_service.apply_timer_action(game, action, data.get("seconds"))
    emit_game_changed(game)
    return jsonify(build_game_state_payload(game)), 200


# ---------------------------------------------------------------------------
# Tasks and submissions
# ---------------------------------------------------------------------------

@games_bp.route("/games/<code>/task", methods=["POST"])
def set_task(code: str):
    """POST /api/games/<code>/task — choose the task for a round (default: the next one)."""
    data = _body()
    task_id = require_int(data.get("task_id"), "task_id", 1)
    round_number = optional_int(data.get("round_number"), "round_number")
    game = game_service.get_game_or_404(code)

    game_task = game_service.assign_task(game, task_id, round_number)
    emit_game_changed(game)
    return jsonify({
        "success": True,
        "round_number": game_task.round_number,
        "task": task_dict(game_task.task),
    }), 200


@games_bp.route("/games/<code>/submissions", methods=["POST"])
def submit(code: str):
    """POST /api/games/<code>/submissions — submit or overwrite a response for the current round."""
    data = _body()
    player_id = require_int(data.get("player_id"), "player_id", 1)
    game = game_service.get_game_or_404(code)

    submission, created = submission_service.submit(game, player_id, data.get("content"))
    emit_submission_changed(game, submission, "INSERT" if created else "UPDATE")
    return jsonify(submission_dict(submission)), 201 if created else 200


@games_bp.route("/games/<code>/submissions", methods=["GET"])
def list_submissions(code: str):
    """GET /api/games/<code>/submissions — one round (?round=N, default current) or ?all=true."""
    game = game_service.get_game_or_404(code)

    if request.args.get("all", "").lower() == "true":
        rounds = submission_service.list_all_rounds(game)
        return jsonify({
            "rounds": [
                {
                    "round_number": game_task.round_number,
                    "task": task_dict(game_task.task),
                    "submissions": [submission_dict(s) for s in submissions],
                }
                for game_task, submissions in rounds
            ]
        }), 200

    round_number = request.args.get("round", type=int)
    if round_number is None and game.current_round < 1:
        return jsonify({"game_task": None, "submissions": []}), 200
    game_task, submissions = submission_service.list_round(game, round_number)
    return jsonify({
        "game_task": game_task_dict(game_task) if game_task else None,
        "submissions": [submission_dict(s) for s in submissions],
    }), 200


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

@games_bp.route("/games/<code>/award", methods=["POST"])
def award(code: str):
    """POST /api/games/<code>/award — add facilitator points to one player."""
    data = _body()
    player_id = require_int(data.get("player_id"), "player_id", 1)
    game = game_service.get_game_or_404(code)

    game_player = scoring_service.award(
        game, player_id, data.get("points"), strict=bool(data.get("strict", False))
    )
    emit_game_player_changed(game, game_player, "UPDATE")
    return jsonify(game_player_dict(game_player)), 200


@games_bp.route("/games/<code>/judge", methods=["POST"])
def judge(code: str):
    """POST /api/games/<code>/judge — AI-judge every unjudged submission of the current round."""
    game = game_service.get_game_or_404(code)
    result = scoring_service.judge_round(game, notify=emit_game_changed)

    for submission in result.judged + result.fallbacks:
        emit_submission_changed(game, submission, "UPDATE")
    for game_player in game.game_players:
        emit_game_player_changed(game, game_player, "UPDATE")

    return jsonify({
        "results": [submission_dict(s) for s in result.submissions],
        "judged": len(result.judged),
        "fallbacks": len(result.fallbacks),
        "skipped": len(result.skipped),
        "failed": len(result.failed),
    }), 200


@games_bp.route("/games/<code>/leaderboard", methods=["GET"])
def leaderboard(code: str):
    """GET /api/games/<code>/leaderboard — ranked standings and team rollup."""
    game = game_service.get_game_or_404(code)
    return jsonify(leaderboard_service.game_leaderboard(game)), 200


# ---------------------------------------------------------------------------
# Reflection
# ---------------------------------------------------------------------------

@games_bp.route("/games/<code>/reflection", methods=["GET"])
def get_reflection(code: str):
    """GET /api/games/<code>/reflection — the stored reflection, 404 until generated."""
    game = game_service.get_game_or_404(code)
    return jsonify({"reflection": reflection_service.get_reflection(game)}), 200


@games_bp.route("/games/<code>/reflection", methods=["POST"])
def generate_reflection(code: str):
    """POST /api/games/<code>/reflection — generate once; later calls return the stored payload."""
    game = game_service.get_game_or_404(code)
    had_reflection = game.reflection is not None
    reflection = reflection_service.generate_reflection(game)
    if not had_reflection:
        emit_game_changed(game)
    return jsonify({"reflection": reflection}), 200
