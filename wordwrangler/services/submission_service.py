"""Submission service: one response per player per round, resubmittable while the round is open."""
import logging
from flask import current_app
from sqlalchemy.exc import IntegrityError
from ..extensions import db
from ..models.game import Game, GameStatus
from ..models.game_task import GameTask
from ..models.submission import Submission
from ..utils.timestamps import utcnow
from ..utils.validation import clean_text
from ..errors import PhaseMismatchError, ValidationError
from . import game_service
from .state_service import current_game_task

logger = logging.getLogger(__name__)


def submit(game: Game, player_id: int, content: str) -> tuple[Submission, bool]:
    """Create or overwrite the player's submission for the current round.

    A resubmission replaces the content and ``submitted_at`` but keeps any
    judge output already stored on the row.

    Args:
        game: The Game instance.
        player_id: Submitting player.
        content: Raw response text; trimmed before storing.

    Returns:
        Tuple of the Submission and whether it was newly created.

    Raises:
        PhaseMismatchError: If the game is not active or the round has no task.
        NotInGameError: If the player has not joined this game.
        ValidationError: If the content is empty or too long.
    """
    if game.status != GameStatus.ACTIVE:
        raise PhaseMismatchError("Submissions are only accepted while a round is active.")

    game_task = current_game_task(game)
    if game_task is None:
        raise PhaseMismatchError("No active task")

    game_service.get_game_player_or_404(game, player_id)
    text = clean_text(content, "content", current_app.config["MAX_SUBMISSION_LENGTH"])

    submission = _find(game_task, player_id)
    if submission is not None:
        submission.content = text
        submission.submitted_at = utcnow()
        db.session.commit()
        return submission, False

    submission = Submission(game_task_id=game_task.id, player_id=player_id, content=text)
    db.session.add(submission)
    try:
        db.session.commit()
    except IntegrityError:
        # Double submit from the same player raced us; fold into an update
        db.session.rollback()
        submission = _find(game_task, player_id)
        if submission is None:
            raise
        submission.content = text
        submission.submitted_at = utcnow()
        db.session.commit()
        return submission, False
    return submission, True


def list_round(game: Game, round_number: int | None = None) -> tuple[GameTask | None, list[Submission]]:
    """Return the GameTask and submissions for one round (default: current round)."""
    target = game.current_round if round_number is None else round_number
    if target < 1 or target > game.total_rounds:
        raise ValidationError(f"round must be between 1 and {game.total_rounds}.")
    game_task = db.session.execute(
        db.select(GameTask).where(GameTask.game_id == game.id, GameTask.round_number == target)
    ).scalar_one_or_none()
    if game_task is None:
        return None, []
    return game_task, _submissions_for(game_task)


def list_all_rounds(game: Game) -> list[tuple[GameTask, list[Submission]]]:
    """Return every assigned round with its submissions, ordered by round number."""
    return [(game_task, _submissions_for(game_task)) for game_task in game.game_tasks]


def _submissions_for(game_task: GameTask) -> list[Submission]:
    return list(db.session.execute(
        db.select(Submission)
        .where(Submission.game_task_id == game_task.id)
        .order_by(Submission.submitted_at, Submission.id)
    ).scalars().all())


def _find(game_task: GameTask, player_id: int) -> Submission | None:
    return db.session.execute(
        db.select(Submission).where(
            Submission.game_task_id == game_task.id,
            Submission.player_id == player_id,
        )
    ).scalar_one_or_none()
