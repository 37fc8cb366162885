"""Round timer protocol.

The countdown is never ticked server-side. A game stores one reference
point and every client derives the remaining time from it:

* ``timer_started_at`` set: the timer is running and
  ``remaining = max(0, timer_seconds - floor(now - timer_started_at))``.
* ``timer_paused_remaining`` set: the timer is paused with that many seconds left.
* neither set: idle, the full ``timer_seconds`` remain.

Resuming folds the paused value back into ``timer_seconds`` so the same
formula stays correct across any number of pause/resume cycles.
"""
import math
from datetime import datetime
from typing import Any, Mapping

from ..errors import PhaseMismatchError, ValidationError
from ..models.game import Game
from ..utils.timestamps import utcnow, parse_timestamp


def remaining_seconds(
    timer_seconds: int,
    started_at: datetime | None,
    paused_remaining: int | None,
    now: datetime | None = None,
) -> int:
    """Compute the seconds left on a round timer from its stored reference point.

    Args:
        timer_seconds: Stored duration (time left as of ``started_at``).
        started_at: When the timer was last started or resumed, or None.
        paused_remaining: Seconds left when paused, or None.
        now: Current UTC time; defaults to ``utcnow()``.

    Returns:
        Whole seconds remaining, never negative.
    """
    if started_at is not None:
        now = now or utcnow()
        # A client clock slightly behind the writer's must not add time
        elapsed = max(0, math.floor((now - started_at).total_seconds()))
        return max(0, timer_seconds - elapsed)
    if paused_remaining is not None:
        return paused_remaining
    return timer_seconds


def game_remaining(game: Game, now: datetime | None = None) -> int:
    """Return the remaining seconds for a Game row."""
    return remaining_seconds(game.timer_seconds, game.timer_started_at, game.timer_paused_remaining, now)


def payload_remaining(payload: Mapping[str, Any], now: datetime | None = None) -> int:
    """Return the remaining seconds for a serialised game payload.

    Applies the same formula as :func:`game_remaining` to the JSON shape
    returned by ``GET /games/<code>`` so every client role agrees.
    """
    return remaining_seconds(
        int(payload["timer_seconds"]),
        parse_timestamp(payload.get("timer_started_at")),
        payload.get("timer_paused_remaining"),
        now,
    )


def is_running(game: Game) -> bool:
    return game.timer_started_at is not None


def is_paused(game: Game) -> bool:
    return game.timer_paused_remaining is not None


def is_expired(game: Game, now: datetime | None = None) -> bool:
    """True when a running timer has reached zero."""
    return is_running(game) and game_remaining(game, now) == 0


def check_invariants(started_at: datetime | None, paused_remaining: int | None) -> None:
    """Raise ValidationError if both timer reference points are set."""
    if started_at is not None and paused_remaining is not None:
        raise ValidationError("timer_started_at and timer_paused_remaining cannot both be set.")


# The mutators below return the field changes instead of touching the row,
# so callers can apply them in a single conditional UPDATE together with any
# status/round change.

def start(game: Game, now: datetime | None = None) -> dict[str, Any]:
    """Start an idle timer from the full ``timer_seconds``."""
    if is_running(game):
        raise PhaseMismatchError("Timer is already running.")
    if is_paused(game):
        raise PhaseMismatchError("Timer is paused; resume it instead.")
    return {"timer_started_at": now or utcnow()}


def restart(game: Game, now: datetime | None = None) -> dict[str, Any]:
    """Reset to the configured round duration and start counting immediately."""
    return {
        "timer_seconds": game.round_duration,
        "timer_paused_remaining": None,
        "timer_started_at": now or utcnow(),
    }


def pause(game: Game, now: datetime | None = None) -> dict[str, Any]:
    """Freeze a running timer, storing what was left."""
    if not is_running(game):
        raise PhaseMismatchError("Timer is not running.")
    return {
        "timer_paused_remaining": game_remaining(game, now),
        "timer_started_at": None,
    }


def resume(game: Game, now: datetime | None = None) -> dict[str, Any]:
    """Restart a paused timer from where it stopped."""
    if not is_paused(game):
        raise PhaseMismatchError("Timer is not paused.")
    return {
        "timer_seconds": game.timer_paused_remaining,
        "timer_paused_remaining": None,
        "timer_started_at": now or utcnow(),
    }


def add_time(game: Game, seconds: int) -> dict[str, Any]:
    """Extend the current round's timer by ``seconds`` whatever its state."""
    if is_paused(game):
        return {"timer_paused_remaining": game.timer_paused_remaining + seconds}
    return {"timer_seconds": game.timer_seconds + seconds}


def reset(game: Game) -> dict[str, Any]:
    """Return the timer to idle at the configured round duration."""
    return {
        "timer_seconds": game.round_duration,
        "timer_started_at": None,
        "timer_paused_remaining": None,
    }


def clear() -> dict[str, Any]:
    """Freeze the timer at the end of a round."""
    return {"timer_started_at": None, "timer_paused_remaining": None}


def configure(game: Game, seconds: int) -> dict[str, Any]:
    """Change the configured round duration.

    An idle timer picks the new duration up immediately; a running or paused
    one keeps its current countdown and the change applies from the next round.
    """
    changes: dict[str, Any] = {"round_duration": seconds}
    if not is_running(game) and not is_paused(game):
        changes["timer_seconds"] = seconds
    return changes


def timer_view(game: Game, now: datetime | None = None) -> dict[str, Any]:
    """Derived timer fields included in the full game view."""
    left = game_remaining(game, now)
    return {
        "remaining_seconds": left,
        "running": is_running(game),
        "paused": is_paused(game),
        "expired": is_running(game) and left == 0,
        "round_duration": game.round_duration,
    }
