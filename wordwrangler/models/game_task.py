"""GameTask model: the task assigned to one round of one game."""
import enum
from sqlalchemy import Integer, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..extensions import db


class ScoringMode(str, enum.Enum):
    """Which scoring path a round has been scored through."""

    HUMAN = "human"
    AI = "ai"


class GameTask(db.Model):
    """Binds a Task to a (game, round_number) pair."""

    __tablename__ = "game_tasks"
    __table_args__ = (UniqueConstraint("game_id", "round_number", name="uq_game_round_task"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_id: Mapped[int] = mapped_column(Integer, ForeignKey("tasks.id"), nullable=False)
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)
    # NULL until the first award or judge call for this round
    scoring_mode: Mapped[ScoringMode | None] = mapped_column(
        Enum(ScoringMode, values_callable=lambda e: [v.value for v in e]),
        nullable=True,
    )

    # Relationships
    game: Mapped["Game"] = relationship(  # type: ignore[name-defined]
        "Game", back_populates="game_tasks"
    )
    task: Mapped["Task"] = relationship(  # type: ignore[name-defined]
        "Task", lazy="joined"
    )
    submissions: Mapped[list["Submission"]] = relationship(  # type: ignore[name-defined]
        "Submission",
        back_populates="game_task",
        cascade="all, delete-orphan",
        order_by="Submission.submitted_at",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<GameTask game={self.game_id} round={self.round_number} task={self.task_id}>"
