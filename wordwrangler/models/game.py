"""Game model."""
import enum
from datetime import datetime
from typing import Any
from sqlalchemy import Boolean, String, DateTime, Enum, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..extensions import db
from ..utils.timestamps import utcnow


class GameStatus(str, enum.Enum):
    """Game lifecycle statuses."""

    LOBBY = "lobby"
    ACTIVE = "active"
    JUDGING = "judging"
    LEADERBOARD = "leaderboard"
    REFLECTION = "reflection"
    COMPLETED = "completed"


class Game(db.Model):
    """Represents a single game session."""

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(8), unique=True, nullable=False, index=True)
    facilitator_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[GameStatus] = mapped_column(
        Enum(GameStatus, values_callable=lambda e: [v.value for v in e]),
        nullable=False,
        default=GameStatus.LOBBY,
        index=True,
    )
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_rounds: Mapped[int] = mapped_column(Integer, nullable=False)
    # Configured per-round duration; timer_seconds becomes "time left" after a resume
    round_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    timer_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    # At most one of these two is set: running vs paused. Both NULL means idle.
    timer_started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    timer_paused_remaining: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Set while an AI batch holds the game in judging on behalf of a running round
    ai_judging: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reflection: Mapped[dict[str, Any] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Relationships
    game_players: Mapped[list["GamePlayer"]] = relationship(  # type: ignore[name-defined]
        "GamePlayer",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="GamePlayer.id",
        lazy="select",
    )
    game_tasks: Mapped[list["GameTask"]] = relationship(  # type: ignore[name-defined]
        "GameTask",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="GameTask.round_number",
        lazy="select",
    )

    @property
    def is_terminal(self) -> bool:
        """Return True once the game can no longer change status."""
        return self.status == GameStatus.COMPLETED

    def __repr__(self) -> str:
        return f"<Game code={self.code} status={self.status} round={self.current_round}/{self.total_rounds}>"
