"""Player model."""
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..extensions import db
from ..utils.timestamps import utcnow


class Player(db.Model):
    """A person who plays across many games, identified by id (and optionally email)."""

    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    display_name: Mapped[str] = mapped_column(String(50), nullable=False)
    avatar: Mapped[str | None] = mapped_column(String(50), nullable=True)
    # Natural key for returning-player lookup; NULL for anonymous players
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    team_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("teams.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Relationships
    team: Mapped["Team | None"] = relationship(  # type: ignore[name-defined]
        "Team", back_populates="members", lazy="select"
    )
    memberships: Mapped[list["GamePlayer"]] = relationship(  # type: ignore[name-defined]
        "GamePlayer", back_populates="player", lazy="select"
    )
    submissions: Mapped[list["Submission"]] = relationship(  # type: ignore[name-defined]
        "Submission", back_populates="player", lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Player id={self.id} name={self.display_name}>"
