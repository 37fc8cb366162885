"""Game lifecycle service: creation, lookup, raw updates, membership and task assignment."""
import logging
from typing import Any
from flask import current_app
from sqlalchemy.exc import IntegrityError
from ..extensions import db
from ..models.game import Game, GameStatus
from ..models.game_player import GamePlayer
from ..models.game_task import GameTask
from ..models.player import Player
from ..models.submission import Submission
from ..models.task import Task
from ..utils.code_generator import generate_unique_code
from ..utils.task_catalog import DEFAULT_TASKS, pick_task_ids
from ..utils.timestamps import parse_timestamp
from ..utils.validation import require_int
from ..errors import (
    GameNotFoundError,
    NotInGameError,
    PhaseMismatchError,
    PlayerNotFoundError,
    TaskNotFoundError,
    ValidationError,
)
from . import round_service, timer_service

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = frozenset({
    "status",
    "current_round",
    "timer_seconds",
    "timer_started_at",
    "timer_paused_remaining",
})


def create_game(facilitator_name: str | None, total_rounds: int, timer_seconds: int) -> Game:
    """Create a new game in the lobby, pre-assigning a random task to every round.

    Tasks are only pre-assigned when the catalog has at least ``total_rounds``
    entries; otherwise the facilitator chooses each round's task live.

    Args:
        facilitator_name: Optional display name of the host.
        total_rounds: Number of rounds, fixed for the game's lifetime.
        timer_seconds: Configured round duration.

    Returns:
        The persisted Game.
    """
    code = generate_unique_code(_code_taken)
    game = Game(
        code=code,
        facilitator_name=facilitator_name,
        status=GameStatus.LOBBY,
        current_round=0,
        total_rounds=total_rounds,
        round_duration=timer_seconds,
        timer_seconds=timer_seconds,
    )
    db.session.add(game)
    db.session.flush()

    task_ids = db.session.execute(db.select(Task.id)).scalars().all()
    for round_number, task_id in enumerate(pick_task_ids(list(task_ids), total_rounds), start=1):
        db.session.add(GameTask(game_id=game.id, task_id=task_id, round_number=round_number))

    db.session.commit()
    logger.info("created game %s (%d rounds, %ds)", game.code, total_rounds, timer_seconds)
    return game


def list_games(status: GameStatus | None = None, limit: int = 20) -> list[tuple[Game, int]]:
    """Return recent games with their player counts, newest first."""
    player_count = (
        db.select(GamePlayer.game_id, db.func.count(GamePlayer.id).label("player_count"))
        .group_by(GamePlayer.game_id)
        .subquery()
    )
    query = (
        db.select(Game, db.func.coalesce(player_count.c.player_count, 0))
        .outerjoin(player_count, player_count.c.game_id == Game.id)
        .order_by(Game.created_at.desc(), Game.id.desc())
        .limit(limit)
    )
    if status is not None:
        query = query.where(Game.status == status)
    return [(game, count) for game, count in db.session.execute(query).all()]


def get_game_or_404(code: str) -> Game:
    """Fetch game by code (case-insensitive) or raise GameNotFoundError."""
    game = db.session.execute(
        db.select(Game).where(Game.code == code.upper())
    ).scalar_one_or_none()
    if game is None:
        raise GameNotFoundError()
    return game


def update_game(game: Game, updates: dict[str, Any]) -> Game:
    """Apply a raw ``PATCH /games/<code>`` update after validating every invariant.

    No side effects beyond the write itself: the action endpoints in
    round_service are the way to get timer resets and the like. A status
    change must be a legal transition, and entering ``active`` must carry the
    matching ``current_round`` in the same update.

    Raises:
        ValidationError: Unknown or malformed fields, or an empty update.
        PhaseMismatchError: Illegal transition or round change.
    """
    unknown = sorted(set(updates) - PATCHABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(unknown)}.")
    if not updates:
        raise ValidationError("No valid fields to update.")

    values: dict[str, Any] = {}

    target_status = game.status
    if "status" in updates:
        try:
            target_status = GameStatus(updates["status"])
        except ValueError:
            raise ValidationError(f"Invalid status: {updates['status']!r}.") from None
        if target_status != game.status:
            round_service.check_transition(game, target_status)
            values["status"] = target_status
            values["ai_judging"] = False

    if "current_round" in updates:
        new_round = require_int(updates["current_round"], "current_round", 0, game.total_rounds)
        if new_round < game.current_round:
            raise PhaseMismatchError("current_round can only increase.")
        if new_round != game.current_round:
            values["current_round"] = new_round

    entering_active = values.get("status") == GameStatus.ACTIVE
    if entering_active and values.get("current_round") != game.current_round + 1:
        raise PhaseMismatchError(f"Starting a round requires current_round={game.current_round + 1}.")
    if "current_round" in values and not entering_active:
        raise PhaseMismatchError("current_round only advances when a round starts.")

    if "timer_seconds" in updates:
        values["timer_seconds"] = require_int(
            updates["timer_seconds"], "timer_seconds", 1, current_app.config["MAX_TIMER_SECONDS"]
        )

    if "timer_started_at" in updates:
        try:
            values["timer_started_at"] = parse_timestamp(updates["timer_started_at"])
        except (TypeError, ValueError):
            raise ValidationError("timer_started_at must be an ISO-8601 timestamp or null.") from None

    if "timer_paused_remaining" in updates:
        raw = updates["timer_paused_remaining"]
        values["timer_paused_remaining"] = None if raw is None else require_int(raw, "timer_paused_remaining", 0)

    timer_service.check_invariants(
        values.get("timer_started_at", game.timer_started_at),
        values.get("timer_paused_remaining", game.timer_paused_remaining),
    )

    if not values:
        return game
    previous = game.status
    round_service.apply_update(game, previous, values)
    if game.status != previous:
        logger.info("game %s: %s -> %s via patch", game.code, previous.value, game.status.value)
    return game


def delete_game(game: Game) -> None:
    """Hard-delete a game and, by cascade, its tasks, submissions and memberships."""
    code = game.code
    db.session.delete(game)
    db.session.commit()
    logger.info("deleted game %s", code)


def join_game(game: Game, player_id: int) -> tuple[GamePlayer, bool]:
    """Add a player to a game, idempotently.

    A repeat join returns the existing membership unchanged, even after the
    game has started, so a reloading client can reattach.

    Returns:
        Tuple of the GamePlayer row and whether it was created by this call.

    Raises:
        PlayerNotFoundError: If the player does not exist.
        PhaseMismatchError: If the game has left the lobby and the player is new.
    """
    player = db.session.get(Player, player_id)
    if player is None:
        raise PlayerNotFoundError()

    existing = find_game_player(game, player_id)
    if existing is not None:
        return existing, False

    if game.status != GameStatus.LOBBY:
        raise PhaseMismatchError("This game has already started and is not accepting new players.")

    game_player = GamePlayer(game_id=game.id, player_id=player_id, score=0)
    db.session.add(game_player)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent join for the same pair
        db.session.rollback()
        existing = find_game_player(game, player_id)
        if existing is None:
            raise
        return existing, False
    return game_player, True


def leave_game(game: Game, player_id: int) -> None:
    """Remove a player from a game that has not started yet."""
    game_player = find_game_player(game, player_id)
    if game_player is None:
        raise NotInGameError()
    if game.status != GameStatus.LOBBY:
        raise PhaseMismatchError("Players can only leave before the game starts.")
    db.session.delete(game_player)
    db.session.commit()


def find_game_player(game: Game, player_id: int) -> GamePlayer | None:
    return db.session.execute(
        db.select(GamePlayer).where(
            GamePlayer.game_id == game.id,
            GamePlayer.player_id == player_id,
        )
    ).scalar_one_or_none()


def get_game_player_or_404(game: Game, player_id: int) -> GamePlayer:
    game_player = find_game_player(game, player_id)
    if game_player is None:
        raise NotInGameError()
    return game_player


def assign_task(game: Game, task_id: int, round_number: int | None = None) -> GameTask:
    """Set the task for a round, creating or replacing its GameTask.

    Args:
        game: The Game instance.
        task_id: Task to assign.
        round_number: Target round; defaults to the round after the current one.

    Raises:
        TaskNotFoundError: Unknown task.
        ValidationError: Round outside 1..total_rounds.
        PhaseMismatchError: The round is already over or has submissions.
    """
    task = db.session.get(Task, task_id)
    if task is None:
        raise TaskNotFoundError()

    target = round_number if round_number is not None else game.current_round + 1
    if target < 1 or target > game.total_rounds:
        raise ValidationError(f"round_number must be between 1 and {game.total_rounds}.")
    if target < game.current_round:
        raise PhaseMismatchError("That round has already been played.")

    game_task = db.session.execute(
        db.select(GameTask).where(GameTask.game_id == game.id, GameTask.round_number == target)
    ).scalar_one_or_none()

    if game_task is None:
        game_task = GameTask(game_id=game.id, task_id=task.id, round_number=target)
        db.session.add(game_task)
    else:
        has_submissions = db.session.execute(
            db.select(db.func.count()).select_from(Submission).where(Submission.game_task_id == game_task.id)
        ).scalar() or 0
        if has_submissions:
            raise PhaseMismatchError("This round already has submissions; its task can no longer change.")
        game_task.task_id = task.id

    db.session.commit()
    db.session.refresh(game_task)
    return game_task


def list_tasks() -> list[Task]:
    return list(db.session.execute(db.select(Task).order_by(Task.title)).scalars().all())


def seed_tasks() -> int:
    """Insert the built-in task catalog, skipping titles already present.

    Returns:
        Number of tasks inserted.
    """
    existing = set(db.session.execute(db.select(Task.title)).scalars().all())
    added = 0
    for entry in DEFAULT_TASKS:
        if entry["title"] in existing:
            continue
        db.session.add(Task(**entry))
        added += 1
    db.session.commit()
    return added


def _code_taken(code: str) -> bool:
    return db.session.execute(
        db.select(Game.id).where(Game.code == code)
    ).scalar_one_or_none() is not None
