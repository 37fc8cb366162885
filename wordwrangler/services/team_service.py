"""Team service."""
import logging
from typing import Any
from sqlalchemy.exc import IntegrityError
from ..extensions import db
from ..models.player import Player
from ..models.team import Team
from ..utils.validation import clean_text
from ..errors import TeamNotFoundError

logger = logging.getLogger(__name__)

MAX_TEAM_NAME_LENGTH = 100


def create_team(name: Any) -> tuple[Team, bool]:
    """Create a team, or return the existing team with the same name."""
    team_name = clean_text(name, "name", MAX_TEAM_NAME_LENGTH)
    existing = find_by_name(team_name)
    if existing is not None:
        return existing, False

    team = Team(name=team_name)
    db.session.add(team)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = find_by_name(team_name)
        if existing is None:
            raise
        return existing, False
    logger.info("created team %d (%s)", team.id, team.name)
    return team, True


def find_by_name(name: str) -> Team | None:
    return db.session.execute(db.select(Team).where(Team.name == name)).scalar_one_or_none()


def get_team_or_404(team_id: int) -> Team:
    team = db.session.get(Team, team_id)
    if team is None:
        raise TeamNotFoundError()
    return team


def list_teams() -> list[tuple[Team, int]]:
    """All teams by name, each with its member count."""
    member_count = (
        db.select(Player.team_id, db.func.count(Player.id).label("member_count"))
        .where(Player.team_id.is_not(None))
        .group_by(Player.team_id)
        .subquery()
    )
    rows = db.session.execute(
        db.select(Team, db.func.coalesce(member_count.c.member_count, 0))
        .outerjoin(member_count, member_count.c.team_id == Team.id)
        .order_by(Team.name)
    ).all()
    return [(team, count) for team, count in rows]


def delete_team(team: Team) -> None:
    """Unassign every member, then delete the team."""
    team_id = team.id
    db.session.execute(
        db.update(Player)
        .where(Player.team_id == team_id)
        .values(team_id=None)
        .execution_options(synchronize_session=False)
    )
    db.session.delete(team)
    db.session.commit()
    logger.info("deleted team %d", team_id)
