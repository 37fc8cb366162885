"""Task model."""
from sqlalchemy import String, Text, Integer
from sqlalchemy.orm import Mapped, mapped_column
from ..extensions import db


class Task(db.Model):
    """A writing prompt from the static catalog. Read-only to the game flow."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    suggested_time_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=180)
    judging_criteria: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Task title={self.title!r}>"
