"""Player service: cross-game identities."""
import logging
from typing import Any
from flask import current_app
from sqlalchemy.exc import IntegrityError
from ..extensions import db
from ..models.player import Player
from ..models.team import Team
from ..utils.validation import clean_text, optional_int, optional_text
from ..errors import PlayerNotFoundError, TeamNotFoundError, ValidationError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("display_name", "avatar", "team_id")
MAX_EMAIL_LENGTH = 255


def normalize_email(value: Any) -> str | None:
    email = optional_text(value, "email", MAX_EMAIL_LENGTH)
    if email is None:
        return None
    if "@" not in email:
        raise ValidationError("email must be a valid address.")
    return email.lower()


def create_player(
    display_name: Any,
    avatar: Any = None,
    email: Any = None,
    team_id: Any = None,
) -> tuple[Player, bool]:
    """Register a player, or return the existing one for a known email.

    Returns:
        Tuple of the Player and whether it was created by this call.

    Raises:
        ValidationError: Bad display name, avatar or email.
        TeamNotFoundError: Unknown team id.
    """
    config = current_app.config
    name = clean_text(display_name, "display_name", config["MAX_DISPLAY_NAME_LENGTH"])
    glyph = optional_text(avatar, "avatar", config["MAX_AVATAR_LENGTH"])
    address = normalize_email(email)
    team = _team_or_none(team_id)

    if address is not None:
        existing = find_by_email(address)
        if existing is not None:
            return existing, False

    player = Player(display_name=name, avatar=glyph, email=address, team_id=team.id if team else None)
    db.session.add(player)
    try:
        db.session.commit()
    except IntegrityError:
        # Concurrent registration with the same email
        db.session.rollback()
        existing = find_by_email(address) if address else None
        if existing is None:
            raise
        return existing, False
    logger.info("registered player %d (%s)", player.id, player.display_name)
    return player, True


def find_by_email(email: str) -> Player | None:
    return db.session.execute(
        db.select(Player).where(Player.email == email.strip().lower())
    ).scalar_one_or_none()


def get_player_or_404(player_id: int) -> Player:
    player = db.session.get(Player, player_id)
    if player is None:
        raise PlayerNotFoundError()
    return player


def list_players(limit: int = 100) -> list[Player]:
    return list(db.session.execute(
        db.select(Player).order_by(Player.display_name, Player.id).limit(limit)
    ).scalars().all())


def update_player(player: Player, updates: dict[str, Any]) -> Player:
    """Change a player's display name, avatar or team.

    Fields other than those in UPDATABLE_FIELDS are ignored; ``team_id`` set
    to null removes the player from their team.

    Raises:
        ValidationError: No updatable field given, or a bad value.
        TeamNotFoundError: Unknown team id.
    """
    present = [f for f in UPDATABLE_FIELDS if f in updates]
    if not present:
        raise ValidationError("No valid fields to update.")

    config = current_app.config
    if "display_name" in updates:
        player.display_name = clean_text(updates["display_name"], "display_name", config["MAX_DISPLAY_NAME_LENGTH"])
    if "avatar" in updates:
        player.avatar = optional_text(updates["avatar"], "avatar", config["MAX_AVATAR_LENGTH"])
    if "team_id" in updates:
        team = _team_or_none(updates["team_id"])
        player.team_id = team.id if team else None

    db.session.commit()
    db.session.refresh(player)
    return player


def _team_or_none(team_id: Any) -> Team | None:
    team_id = optional_int(team_id, "team_id", 1)
    if team_id is None:
        return None
    team = db.session.get(Team, team_id)
    if team is None:
        raise TeamNotFoundError()
    return team
