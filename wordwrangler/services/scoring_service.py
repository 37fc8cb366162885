"""Scoring service: human point awards and AI batch judging, both feeding GamePlayer.score."""
import logging
from dataclasses import dataclass, field
from typing import Callable
from flask import current_app
from ..extensions import db
from ..models.game import Game, GameStatus
from ..models.game_player import GamePlayer
from ..models.game_task import GameTask, ScoringMode
from ..models.submission import Submission
from ..utils.optimistic import compare_and_swap
from ..utils.validation import require_int
from ..errors import ConcurrencyError, NotInGameError, PhaseMismatchError
from .ai import judge as ai_judge
from .ai.client import AIResponseError, AIServiceError
from . import game_service, round_service
from .state_service import current_game_task

logger = logging.getLogger(__name__)


@dataclass
class JudgeResult:
    """Outcome of one judge_round call."""

    judged: list[Submission] = field(default_factory=list)
    fallbacks: list[Submission] = field(default_factory=list)
    skipped: list[Submission] = field(default_factory=list)
    # Verdict withdrawn after the ledger write gave up; picked up by a re-run
    failed: list[Submission] = field(default_factory=list)

    @property
    def submissions(self) -> list[Submission]:
        return sorted(self.judged + self.fallbacks + self.skipped + self.failed, key=lambda s: s.id)


_OUTCOME_BUCKETS = {
    "judged": "judged",
    "fallback": "fallbacks",
    "skipped": "skipped",
    "failed": "failed",
}


def apply_points(game_player_id: int, points: int) -> int:
    """Add ``points`` to a GamePlayer's score without losing concurrent updates.

    Each attempt re-reads the score and writes
    ``UPDATE game_players SET score = new WHERE id = ? AND score = old``.

    Returns:
        The new score.

    Raises:
        NotInGameError: If the GamePlayer row no longer exists.
        ConcurrencyError: If every attempt raced with another writer.
    """

    def read() -> int:
        score = db.session.execute(
            db.select(GamePlayer.score).where(GamePlayer.id == game_player_id)
        ).scalar_one_or_none()
        if score is None:
            raise NotInGameError()
        return score

    def write(expected: int, new_score: int) -> bool:
        result = db.session.execute(
            db.update(GamePlayer)
            .where(GamePlayer.id == game_player_id, GamePlayer.score == expected)
            .values(score=new_score)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            return False
        db.session.commit()
        return True

    return compare_and_swap(
        read,
        lambda score: score + points,
        write,
        attempts=current_app.config["SCORE_UPDATE_ATTEMPTS"],
        label=f"game_player {game_player_id} score",
    )


def award(game: Game, player_id: int, points: object, strict: bool = False) -> GamePlayer:
    """Apply a facilitator's point award to one player.

    Args:
        game: The Game instance (must be in ``judging``).
        player_id: Player receiving the points.
        points: Requested points; validated against the broad (0-10) or
            strict (1-5) range.
        strict: Use the narrower range of the facilitator's score buttons.

    Returns:
        The refreshed GamePlayer.

    Raises:
        PhaseMismatchError: Wrong status, or the round was already AI-judged.
        ValidationError: Points missing, non-integer or out of range.
        NotInGameError: Player has not joined the game.
        ConcurrencyError: Retries exhausted.
    """
    if game.status != GameStatus.JUDGING:
        raise PhaseMismatchError("Points can only be awarded during judging.")

    config = current_app.config
    if strict:
        low, high = config["STRICT_AWARD_MIN_POINTS"], config["STRICT_AWARD_MAX_POINTS"]
    else:
        low, high = config["AWARD_MIN_POINTS"], config["AWARD_MAX_POINTS"]
    amount = require_int(points, "points", low, high)

    game_player = game_service.get_game_player_or_404(game, player_id)

    game_task = current_game_task(game)
    if game_task is not None:
        claim_scoring_mode(game_task, ScoringMode.HUMAN)

    new_score = apply_points(game_player.id, amount)
    logger.info("game %s: awarded %d to player %d (now %d)", game.code, amount, player_id, new_score)
    db.session.refresh(game_player)
    return game_player


def claim_scoring_mode(game_task: GameTask, mode: ScoringMode) -> None:
    """Lock a round to one scoring path; the first award or judge call wins.

    Raises:
        PhaseMismatchError: If the round was already scored through the other path.
    """
    result = db.session.execute(
        db.update(GameTask)
        .where(
            GameTask.id == game_task.id,
            db.or_(GameTask.scoring_mode.is_(None), GameTask.scoring_mode == mode),
        )
        .values(scoring_mode=mode)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        other = "AI judge" if mode == ScoringMode.HUMAN else "facilitator awards"
        raise PhaseMismatchError(f"This round is already being scored by the {other}.")
    db.session.commit()
    db.session.refresh(game_task)


def judge_round(game: Game, notify: Callable[[Game], None] | None = None) -> JudgeResult:
    """Run the AI judging panel over every unjudged submission of the current round.

    The game shows ``judging`` for the duration of the batch and returns to
    its previous status afterwards. Submissions are judged one at a time and
    committed individually, so a failure partway leaves earlier results in
    place and a re-run only picks up what is left. A failed judge call
    stores the fallback score with placeholder quotes instead of aborting.

    Args:
        game: The Game instance (``active`` or ``judging``).
        notify: Called with the game after each status flip, for broadcasts.

    Raises:
        PhaseMismatchError: Wrong status, no task for the round, or the round
            was already scored by hand.
    """
    if game.status not in (GameStatus.ACTIVE, GameStatus.JUDGING):
        raise PhaseMismatchError("Judging is only available during or right after a round.")

    game_task = current_game_task(game)
    if game_task is None:
        raise PhaseMismatchError("No active task")
    claim_scoring_mode(game_task, ScoringMode.AI)

    previous = game.status
    if previous != GameStatus.JUDGING:
        round_service.apply_update(game, previous, {"status": GameStatus.JUDGING, "ai_judging": True})
        if notify:
            notify(game)

    result = JudgeResult()
    try:
        submissions = db.session.execute(
            db.select(Submission)
            .where(Submission.game_task_id == game_task.id)
            .order_by(Submission.submitted_at, Submission.id)
        ).scalars().all()
        for submission in submissions:
            if submission.ai_score is not None:
                result.skipped.append(submission)
                continue
            outcome = _judge_one(game, game_task, submission)
            getattr(result, _OUTCOME_BUCKETS[outcome]).append(submission)
    finally:
        if previous != GameStatus.JUDGING:
            _restore_status(game, previous, notify)

    logger.info(
        "game %s round %d judged: %d scored, %d fallback, %d already done, %d failed",
        game.code, game.current_round, len(result.judged), len(result.fallbacks),
        len(result.skipped), len(result.failed),
    )
    return result


def _judge_one(game: Game, game_task: GameTask, submission: Submission) -> str:
    """Judge one submission and credit its score.

    Returns:
        ``"judged"``, ``"fallback"``, ``"skipped"`` when an overlapping batch
        stored its verdict first, or ``"failed"`` when the ledger write gave up
        and the verdict was withdrawn so a re-run picks the submission up again.
    """
    task = game_task.task
    player_name = submission.player.display_name if submission.player else "Anonymous"
    try:
        judgment = ai_judge.judge_submission(
            task.title, task.description, task.judging_criteria, player_name, submission.content
        )
        score, greg, alex, fallback = judgment.score, judgment.greg_says, judgment.alex_says, False
    except (AIServiceError, AIResponseError) as exc:
        logger.warning("game %s: judging submission %d failed: %s", game.code, submission.id, exc)
        score = current_app.config["JUDGE_FALLBACK_SCORE"]
        greg, alex, fallback = ai_judge.FALLBACK_GREG_QUOTE, ai_judge.FALLBACK_ALEX_QUOTE, True

    # Only the first verdict for a submission lands, and only it earns points
    stored = db.session.execute(
        db.update(Submission)
        .where(Submission.id == submission.id, Submission.ai_score.is_(None))
        .values(ai_score=score, greg_quote=greg, alex_quote=alex, judge_fallback=fallback)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    db.session.refresh(submission)
    if stored.rowcount != 1:
        logger.info("game %s: submission %d already judged by another batch", game.code, submission.id)
        return "skipped"

    game_player = game_service.find_game_player(game, submission.player_id)
    if game_player is not None:
        try:
            apply_points(game_player.id, score)
        except (ConcurrencyError, NotInGameError) as exc:
            logger.warning(
                "game %s: could not credit submission %d, leaving it unjudged: %s",
                game.code, submission.id, exc.message,
            )
            _withdraw_verdict(submission)
            return "failed"
    return "fallback" if fallback else "judged"


def _withdraw_verdict(submission: Submission) -> None:
    db.session.execute(
        db.update(Submission)
        .where(Submission.id == submission.id)
        .values(ai_score=None, greg_quote=None, alex_quote=None, judge_fallback=False)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    db.session.refresh(submission)


def _restore_status(game: Game, previous: GameStatus, notify: Callable[[Game], None] | None) -> None:
    # Guarded on the batch flag: an End Round during the batch cleared it
    result = db.session.execute(
        db.update(Game)
        .where(Game.id == game.id, Game.status == GameStatus.JUDGING, Game.ai_judging.is_(True))
        .values(status=previous, ai_judging=False)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    db.session.refresh(game)
    if result.rowcount != 1:
        logger.info("game %s: left at %s after judging", game.code, game.status.value)
        return
    if notify:
        notify(game)
