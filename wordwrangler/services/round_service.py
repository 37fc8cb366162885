"""Game state machine: legal status transitions and the side effects of each.

Statuses advance ``lobby -> active -> judging -> leaderboard`` and then either
loop back to ``active`` for the next round or proceed to ``reflection`` and
finally ``completed``. Every transition is written as a single conditional
UPDATE guarded by the status the caller read, so round number, status and
timer fields always change together and a duplicate click cannot apply the
same transition twice.
"""
import logging
from typing import Any
from flask import current_app
from ..extensions import db
from ..models.game import Game, GameStatus
from ..errors import PhaseMismatchError, ValidationError
from ..utils.validation import require_int
from . import timer_service

logger = logging.getLogger(__name__)

LEGAL_TRANSITIONS: dict[GameStatus, frozenset[GameStatus]] = {
    GameStatus.LOBBY: frozenset({GameStatus.ACTIVE, GameStatus.COMPLETED}),
    GameStatus.ACTIVE: frozenset({GameStatus.JUDGING, GameStatus.COMPLETED}),
    GameStatus.JUDGING: frozenset({GameStatus.LEADERBOARD, GameStatus.COMPLETED}),
    GameStatus.LEADERBOARD: frozenset({GameStatus.ACTIVE, GameStatus.REFLECTION, GameStatus.COMPLETED}),
    GameStatus.REFLECTION: frozenset({GameStatus.COMPLETED}),
    GameStatus.COMPLETED: frozenset(),
}


def check_transition(game: Game, target: GameStatus) -> None:
    """Raise PhaseMismatchError unless ``game`` may move to ``target`` now.

    Args:
        game: The Game instance, as currently stored.
        target: The requested status.

    Raises:
        PhaseMismatchError: If the edge is not in the state machine or its
            guard fails (no players to start, no rounds left, rounds left
            before reflection).
    """
    current = game.status
    if target not in LEGAL_TRANSITIONS[current]:
        raise PhaseMismatchError(f"Cannot move a game from {current.value} to {target.value}.")

    if current == GameStatus.LOBBY and target == GameStatus.ACTIVE:
        if not game.game_players:
            raise PhaseMismatchError("At least one player must join before the game can start.")
    elif current == GameStatus.LEADERBOARD and target == GameStatus.ACTIVE:
        if game.current_round >= game.total_rounds:
            raise PhaseMismatchError("All rounds have been played.")
    elif current == GameStatus.LEADERBOARD and target == GameStatus.REFLECTION:
        if game.current_round < game.total_rounds:
            raise PhaseMismatchError("Rounds remain; start the next round instead.")


def apply_update(game: Game, expected_status: GameStatus, values: dict[str, Any]) -> Game:
    """Write ``values`` to the game only if its status is still ``expected_status``.

    Args:
        game: The Game instance the caller validated against.
        expected_status: Status the caller read before deciding on ``values``.
        values: Column values to write.

    Returns:
        The refreshed Game instance.

    Raises:
        PhaseMismatchError: If another writer changed the status first.
    """
    result = db.session.execute(
        db.update(Game)
        .where(Game.id == game.id, Game.status == expected_status)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise PhaseMismatchError("The game changed while you were acting on it. Refresh and try again.")
    db.session.commit()
    db.session.refresh(game)
    return game


def _transition(game: Game, target: GameStatus, **values: Any) -> Game:
    check_transition(game, target)
    previous = game.status
    apply_update(game, previous, {"status": target, "ai_judging": False, **values})
    logger.info(
        "game %s: %s -> %s (round %d/%d)",
        game.code, previous.value, target.value, game.current_round, game.total_rounds,
    )
    return game


def start_game(game: Game) -> Game:
    """Lobby -> active: round 1 begins and its timer starts."""
    return _transition(game, GameStatus.ACTIVE, current_round=1, **timer_service.restart(game))


def end_round(game: Game, auto: bool = False) -> Game:
    """Active -> judging, freezing the timer.

    Args:
        game: The Game instance.
        auto: True when a client observed the countdown reach zero. The
            request is rejected unless the stored timer really has expired,
            so any role may send it.

    While an AI batch holds a running round in ``judging`` the end is
    recorded by dropping the batch flag, so the game stays in ``judging``
    once the batch finishes.
    """
    ending_batch = game.status == GameStatus.JUDGING and game.ai_judging
    if (game.status == GameStatus.ACTIVE or ending_batch) and auto and not timer_service.is_expired(game):
        raise PhaseMismatchError("Round timer has not expired yet.")
    if ending_batch:
        apply_update(game, GameStatus.JUDGING, {"ai_judging": False, **timer_service.clear()})
        logger.info("game %s: round %d ended during AI judging", game.code, game.current_round)
        return game
    return _transition(game, GameStatus.JUDGING, **timer_service.clear())


def finish_judging(game: Game, skipped: bool = False) -> Game:
    """Judging -> leaderboard. Awards are applied synchronously, so none are pending."""
    if skipped:
        logger.info("game %s: round %d skipped without scoring", game.code, game.current_round)
    return _transition(game, GameStatus.LEADERBOARD)


def next_round(game: Game) -> Game:
    """Leaderboard -> active for the next round, or -> reflection after the last one."""
    if game.status == GameStatus.LEADERBOARD and game.current_round >= game.total_rounds:
        return enter_reflection(game)
    return _transition(
        game,
        GameStatus.ACTIVE,
        current_round=game.current_round + 1,
        **timer_service.restart(game),
    )


def enter_reflection(game: Game) -> Game:
    """Leaderboard -> reflection once the final round has been scored."""
    return _transition(game, GameStatus.REFLECTION)


def show_winner(game: Game) -> Game:
    """Reflection -> completed. The reflection need not have finished generating."""
    return _transition(game, GameStatus.COMPLETED)


def end_game(game: Game) -> Game:
    """Administrative end: any non-terminal status -> completed."""
    return _transition(game, GameStatus.COMPLETED, **timer_service.clear())


TIMER_ACTIONS = ("start", "pause", "resume", "add", "reset", "configure")


def apply_timer_action(game: Game, action: str, seconds: int | None = None) -> Game:
    """Run one facilitator timer control and persist it atomically.

    Every action except ``configure`` needs a round in progress; ``configure``
    is refused while a round's countdown is running or paused.

    Raises:
        ValidationError: Unknown action, or missing ``seconds``.
        PhaseMismatchError: Wrong game status or timer state.
    """
    if action not in TIMER_ACTIONS:
        raise ValidationError(f"action must be one of: {', '.join(TIMER_ACTIONS)}.")

    if action == "configure":
        if game.status == GameStatus.ACTIVE and (timer_service.is_running(game) or timer_service.is_paused(game)):
            raise PhaseMismatchError("The round duration can only change between rounds.")
        if game.is_terminal:
            raise PhaseMismatchError("This game has ended.")
        changes = timer_service.configure(game, _seconds(seconds))
    else:
        if game.status != GameStatus.ACTIVE:
            raise PhaseMismatchError("The timer can only be controlled during a round.")
        if action == "start":
            changes = timer_service.start(game)
        elif action == "pause":
            changes = timer_service.pause(game)
        elif action == "resume":
            changes = timer_service.resume(game)
        elif action == "add":
            changes = timer_service.add_time(game, _seconds(seconds))
        else:
            changes = timer_service.reset(game)

    apply_update(game, game.status, changes)
    logger.info("game %s: timer %s (remaining %ds)", game.code, action, timer_service.game_remaining(game))
    return game


def _seconds(value: int | None) -> int:
    return require_int(value, "seconds", 1, current_app.config["MAX_TIMER_SECONDS"])
