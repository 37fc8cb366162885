"""GamePlayer model: membership of a player in a game, carrying the score ledger."""
from datetime import datetime
from sqlalchemy import Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..extensions import db
from ..utils.timestamps import utcnow


class GamePlayer(db.Model):
    """A player's seat and running score in one game."""

    __tablename__ = "game_players"
    __table_args__ = (UniqueConstraint("game_id", "player_id", name="uq_game_player"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=False, index=True
    )
    # Only ever written through the optimistic-locked update in scoring_service
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Relationships
    game: Mapped["Game"] = relationship(  # type: ignore[name-defined]
        "Game", back_populates="game_players"
    )
    player: Mapped["Player"] = relationship(  # type: ignore[name-defined]
        "Player", back_populates="memberships", lazy="joined"
    )

    def __repr__(self) -> str:
        return f"<GamePlayer game={self.game_id} player={self.player_id} score={self.score}>"
