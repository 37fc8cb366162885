"""Re-exports all models to ensure Alembic detects them."""
from .game import Game, GameStatus
from .team import Team
from .player import Player
from .game_player import GamePlayer
from .task import Task
from .game_task import GameTask, ScoringMode
from .submission import Submission

__all__ = [
    "Game",
    "GameStatus",
    "Team",
    "Player",
    "GamePlayer",
    "Task",
    "GameTask",
    "ScoringMode",
    "Submission",
]
