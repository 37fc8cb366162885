"""Team model."""
from datetime import datetime
from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..extensions import db
from ..utils.timestamps import utcnow


class Team(db.Model):
    """A named group of players whose game scores roll up together."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    members: Mapped[list["Player"]] = relationship(  # type: ignore[name-defined]
        "Player", back_populates="team", order_by="Player.display_name", lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Team name={self.name}>"
