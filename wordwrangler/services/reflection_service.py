"""Reflection service: generate the end-of-game reflection once and serve it thereafter."""
import logging
from typing import Any, Callable
from flask import Flask
from ..extensions import db, socketio
from ..models.game import Game, GameStatus
from ..errors import AppError, GenerationError, PhaseMismatchError, ReflectionNotFoundError
from .ai import reflection as ai_reflection
from .ai.client import AIResponseError, AIServiceError
from . import round_service, submission_service

logger = logging.getLogger(__name__)


def get_reflection(game: Game) -> dict[str, Any]:
    """Return the stored reflection.

    Raises:
        ReflectionNotFoundError: If none has been generated yet.
    """
    if game.reflection is None:
        raise ReflectionNotFoundError()
    return game.reflection


def generate_reflection(game: Game) -> dict[str, Any]:
    """Generate and store the reflection, or return the one already stored.

    A game sitting on the final leaderboard is moved to ``reflection``
    first. The write only lands if no reflection is stored yet, so two
    overlapping requests both return the same, first-written payload.

    Raises:
        PhaseMismatchError: If the final round has not been played.
        GenerationError: If the model call fails or its output does not parse.
    """
    if game.reflection is not None:
        return game.reflection

    if game.status == GameStatus.LEADERBOARD and game.current_round >= game.total_rounds:
        round_service.enter_reflection(game)
    elif game.status not in (GameStatus.REFLECTION, GameStatus.COMPLETED) or game.current_round < game.total_rounds:
        raise PhaseMismatchError("The reflection is available once the final round has been scored.")

    submissions = _reflection_input(game)
    try:
        reflection = ai_reflection.generate(len(game.game_players), game.current_round, submissions)
    except (AIServiceError, AIResponseError) as exc:
        logger.error("game %s: reflection generation failed: %s", game.code, exc)
        raise GenerationError() from exc

    payload = reflection.model_dump()
    result = db.session.execute(
        db.update(Game)
        .where(Game.id == game.id, Game.reflection.is_(None))
        .values(reflection=payload)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    db.session.refresh(game)
    if result.rowcount == 1:
        logger.info("game %s: reflection stored (%d submissions)", game.code, len(submissions))
    else:
        logger.info("game %s: reflection already stored by another request", game.code)
    return game.reflection


def _reflection_input(game: Game) -> list[dict[str, Any]]:
    rows = []
    for game_task, submissions in submission_service.list_all_rounds(game):
        for submission in submissions:
            rows.append({
                "round": game_task.round_number,
                "task_title": game_task.task.title,
                "task_description": game_task.task.description,
                "player_name": submission.player.display_name,
                "content": submission.content,
                "score": submission.ai_score,
                "greg_feedback": submission.greg_quote,
                "alex_feedback": submission.alex_quote,
            })
    return rows


def schedule_generation(app: Flask, game_id: int, notify: Callable[[Game], None] | None = None) -> None:
    """Generate the reflection off the request thread.

    Failures are logged; the facilitator can retry through
    ``POST /games/<code>/reflection``.

    Args:
        app: The Flask app, for an application context in the worker.
        game_id: Game to reflect on.
        notify: Called with the game once the reflection is stored.
    """

    def _worker() -> None:
        with app.app_context():
            game = db.session.get(Game, game_id)
            if game is None:
                return
            try:
                generate_reflection(game)
            except AppError as exc:
                logger.warning("game %s: background reflection failed: %s", game.code, exc.message)
                return
            if notify:
                notify(game)

    if app.config.get("TESTING"):
        _worker()
    else:
        socketio.start_background_task(_worker)
