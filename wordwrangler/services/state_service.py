"""State serialization service: single source of truth for API and socket payloads.

Every record type leaves the service through one of the ``*_dict`` helpers
below, so the row shapes the three client roles depend on are defined in
exactly one place.
"""
from typing import Any
from ..extensions import db
from ..models.game import Game
from ..models.game_player import GamePlayer
from ..models.game_task import GameTask
from ..models.player import Player
from ..models.submission import Submission
from ..models.task import Task
from ..models.team import Team
from ..utils.timestamps import format_timestamp
from . import timer_service


def game_dict(game: Game) -> dict[str, Any]:
    """Serialise the bare Game row."""
    return {
        "id": game.id,
        "code": game.code,
        "facilitator_name": game.facilitator_name,
        "status": game.status.value,
        "current_round": game.current_round,
        "total_rounds": game.total_rounds,
        "timer_seconds": game.timer_seconds,
        "timer_started_at": format_timestamp(game.timer_started_at),
        "timer_paused_remaining": game.timer_paused_remaining,
        "ai_judging": game.ai_judging,
        "reflection": game.reflection,
        "created_at": format_timestamp(game.created_at),
    }


def team_dict(team: Team) -> dict[str, Any]:
    return {
        "id": team.id,
        "name": team.name,
        "created_at": format_timestamp(team.created_at),
    }


def player_dict(player: Player) -> dict[str, Any]:
    """Serialise a Player, including the team name when assigned."""
    return {
        "id": player.id,
        "display_name": player.display_name,
        "avatar": player.avatar,
        "email": player.email,
        "team_id": player.team_id,
        "team_name": player.team.name if player.team else None,
        "created_at": format_timestamp(player.created_at),
    }


def game_player_dict(game_player: GamePlayer) -> dict[str, Any]:
    """Serialise a GamePlayer row joined to its Player."""
    return {
        "id": game_player.id,
        "game_id": game_player.game_id,
        "player_id": game_player.player_id,
        "score": game_player.score,
        "joined_at": format_timestamp(game_player.joined_at),
        "player": player_dict(game_player.player),
    }


def task_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "category": task.category,
        "suggested_time_seconds": task.suggested_time_seconds,
        "judging_criteria": task.judging_criteria,
    }


def game_task_dict(game_task: GameTask) -> dict[str, Any]:
    """Serialise a GameTask row joined to its Task."""
    return {
        "id": game_task.id,
        "game_id": game_task.game_id,
        "task_id": game_task.task_id,
        "round_number": game_task.round_number,
        "scoring_mode": game_task.scoring_mode.value if game_task.scoring_mode else None,
        "task": task_dict(game_task.task),
    }


def submission_dict(submission: Submission, include_player: bool = True) -> dict[str, Any]:
    """Serialise a Submission, optionally joined to its Player."""
    data = {
        "id": submission.id,
        "game_task_id": submission.game_task_id,
        "player_id": submission.player_id,
        "content": submission.content,
        "submitted_at": format_timestamp(submission.submitted_at),
        "ai_score": submission.ai_score,
        "greg_quote": submission.greg_quote,
        "alex_quote": submission.alex_quote,
        "judge_fallback": submission.judge_fallback,
    }
    if include_player:
        data["player"] = player_dict(submission.player)
    return data


def current_game_task(game: Game) -> GameTask | None:
    """Return the GameTask for the game's current round, if one is assigned."""
    if game.current_round < 1:
        return None
    return db.session.execute(
        db.select(GameTask).where(
            GameTask.game_id == game.id,
            GameTask.round_number == game.current_round,
        )
    ).scalar_one_or_none()


def build_game_state_payload(game: Game) -> dict[str, Any]:
    """Build the full game view returned by ``GET /games/<code>``.

    The same payload is what every role polls, so it carries everything a
    facilitator, player or display needs to render the current state:
    ordered members, the current round's task, all assigned tasks, the
    derived countdown and the current round's submission count.

    Args:
        game: The Game ORM instance (must be inside an active db session).

    Returns:
        A dict representing the full game state.
    """
    current = current_game_task(game)
    submission_count = 0
    if current is not None:
        submission_count = db.session.execute(
            db.select(db.func.count()).select_from(Submission).where(
                Submission.game_task_id == current.id
            )
        ).scalar() or 0

    payload = game_dict(game)
    payload.update({
        "game_players": [game_player_dict(gp) for gp in game.game_players],
        "current_task": game_task_dict(current) if current else None,
        "game_tasks": [game_task_dict(gt) for gt in game.game_tasks],
        "timer": timer_service.timer_view(game),
        "submission_count": submission_count,
        "player_count": len(game.game_players),
    })
    return payload
