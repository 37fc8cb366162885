"""Submission model."""
from datetime import datetime
from sqlalchemy import Boolean, Integer, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..extensions import db
from ..utils.timestamps import utcnow


class Submission(db.Model):
    """One player's text response to one round's task."""

    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("game_task_id", "player_id", name="uq_task_player_submission"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("game_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    # Judge output; NULL until judged
    ai_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    greg_quote: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    alex_quote: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    judge_fallback: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    game_task: Mapped["GameTask"] = relationship(  # type: ignore[name-defined]
        "GameTask", back_populates="submissions"
    )
    player: Mapped["Player"] = relationship(  # type: ignore[name-defined]
        "Player", back_populates="submissions", lazy="joined"
    )

    def __repr__(self) -> str:
        return f"<Submission task={self.game_task_id} player={self.player_id} score={self.ai_score}>"
