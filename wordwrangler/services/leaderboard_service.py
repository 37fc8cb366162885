"""Leaderboards: per-game standings and all-time rankings, recomputed on every call."""
from collections import defaultdict
from typing import Any, Iterable
from ..extensions import db
from ..models.game import Game, GameStatus
from ..models.game_player import GamePlayer
from ..models.player import Player
from ..models.submission import Submission
from ..models.team import Team
from ..utils.timestamps import format_timestamp
from .ai.prompts import score_distribution

RECENT_GAMES_LIMIT = 10


def assign_ranks(rows: list[dict[str, Any]], key: str = "score") -> list[dict[str, Any]]:
    """Attach competition ranks (1, 2, 2, 4) to rows already sorted by ``key`` descending.

    Python's sort is stable, so rows with equal scores keep the order they
    were given in.
    """
    previous = None
    rank = 0
    for position, row in enumerate(rows, start=1):
        if row[key] != previous:
            rank = position
            previous = row[key]
        row["rank"] = rank
    return rows


def _ranked(rows: Iterable[dict[str, Any]], key: str) -> list[dict[str, Any]]:
    ordered = sorted(rows, key=lambda r: r[key], reverse=True)
    return assign_ranks(ordered, key)


def game_leaderboard(game: Game) -> dict[str, Any]:
    """Standings for one game, plus a team rollup when any player has a team.

    Ties keep join order: GamePlayer rows are read in id order before the
    stable sort by score.
    """
    rows = []
    teams: dict[str, dict[str, Any]] = {}
    for gp in game.game_players:
        player = gp.player
        team_name = player.team.name if player.team else None
        rows.append({
            "player_id": gp.player_id,
            "display_name": player.display_name,
            "avatar": player.avatar,
            "team_name": team_name,
            "score": gp.score,
        })
        if team_name is not None:
            entry = teams.setdefault(team_name, {"name": team_name, "score": 0, "players": 0})
            entry["score"] += gp.score
            entry["players"] += 1

    return {
        "game_id": game.id,
        "code": game.code,
        "status": game.status.value,
        "current_round": game.current_round,
        "total_rounds": game.total_rounds,
        "leaderboard": _ranked(rows, "score"),
        "team_leaderboard": _ranked(teams.values(), "score"),
    }


def _completed_scores() -> list[tuple[int, int, int]]:
    """(player_id, game_id, score) for every seat in a completed game."""
    return [
        tuple(row) for row in db.session.execute(
            db.select(GamePlayer.player_id, GamePlayer.game_id, GamePlayer.score)
            .join(Game, Game.id == GamePlayer.game_id)
            .where(Game.status == GameStatus.COMPLETED)
            .order_by(GamePlayer.id)
        ).all()
    ]


def _average(total: int, count: int) -> float:
    return round(total / count, 2) if count else 0


def all_time_players() -> list[dict[str, Any]]:
    """Rank every player with at least one completed game by total score."""
    totals: dict[int, list[int]] = defaultdict(list)
    for player_id, _game_id, score in _completed_scores():
        totals[player_id].append(score)
    if not totals:
        return []

    players = db.session.execute(
        db.select(Player).where(Player.id.in_(totals.keys())).order_by(Player.id)
    ).scalars().all()
    rows = []
    for player in players:
        scores = totals[player.id]
        rows.append({
            "player_id": player.id,
            "display_name": player.display_name,
            "avatar": player.avatar,
            "team_name": player.team.name if player.team else None,
            "total_score": sum(scores),
            "games_played": len(scores),
            "average_score": _average(sum(scores), len(scores)),
        })
    return _ranked(rows, "total_score")


def all_time_teams() -> list[dict[str, Any]]:
    """Rank every team whose members played a completed game by summed score."""
    teams = db.session.execute(db.select(Team).order_by(Team.id)).scalars().all()
    if not teams:
        return []
    team_of = {
        player_id: team_id
        for player_id, team_id in db.session.execute(
            db.select(Player.id, Player.team_id).where(Player.team_id.is_not(None))
        ).all()
    }
    scores_by_team: dict[int, list[tuple[int, int]]] = defaultdict(list)
    for player_id, game_id, score in _completed_scores():
        team_id = team_of.get(player_id)
        if team_id is not None:
            scores_by_team[team_id].append((game_id, score))

    rows = []
    for team in teams:
        entries = scores_by_team.get(team.id)
        if not entries:
            continue
        rows.append(_team_row(team, entries))
    return _ranked(rows, "total_score")


def _team_row(team: Team, entries: list[tuple[int, int]]) -> dict[str, Any]:
    total = sum(score for _game_id, score in entries)
    return {
        "team_id": team.id,
        "team_name": team.name,
        "total_score": total,
        "games_played": len({game_id for game_id, _score in entries}),
        "player_count": len(team.members),
        # Averaged per member-game seat, not per game
        "average_score": _average(total, len(entries)),
    }


def player_stats(player: Player) -> dict[str, Any]:
    """Lifetime stats for the player detail view.

    Scores and game counts cover completed games only; submission counts
    and the 1-5 score distribution cover every judged submission.
    """
    history = db.session.execute(
        db.select(GamePlayer, Game)
        .join(Game, Game.id == GamePlayer.game_id)
        .where(GamePlayer.player_id == player.id)
        .order_by(GamePlayer.joined_at.desc(), GamePlayer.id.desc())
    ).all()
    completed = [gp.score for gp, game in history if game.status == GameStatus.COMPLETED]

    total_submissions = db.session.execute(
        db.select(db.func.count()).select_from(Submission).where(Submission.player_id == player.id)
    ).scalar() or 0
    judged = db.session.execute(
        db.select(Submission.ai_score).where(
            Submission.player_id == player.id,
            Submission.ai_score.is_not(None),
        )
    ).scalars().all()
    distribution = score_distribution(judged)

    return {
        "stats": {
            "games_played": len(completed),
            "total_score": sum(completed),
            "average_score": _average(sum(completed), len(completed)),
            "total_submissions": total_submissions,
            "score_distribution": distribution,
            "fives_count": distribution[4],
            "ones_count": distribution[0],
        },
        "recent_games": [
            {
                "game_id": game.id,
                "game_code": game.code,
                "status": game.status.value,
                "score": gp.score,
                "date": format_timestamp(game.created_at),
            }
            for gp, game in history[:RECENT_GAMES_LIMIT]
        ],
    }


def team_stats(team: Team) -> dict[str, Any]:
    """Aggregate stats over the team's completed games."""
    member_ids = {member.id for member in team.members}
    entries: list[tuple[int, int]] = []
    if member_ids:
        entries = [
            (game_id, score)
            for player_id, game_id, score in _completed_scores()
            if player_id in member_ids
        ]
    row = _team_row(team, entries)
    return {
        "total_score": row["total_score"],
        "games_played": row["games_played"],
        "average_score": row["average_score"],
        "player_count": row["player_count"],
    }
