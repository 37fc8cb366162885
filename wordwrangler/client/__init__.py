"""Python client shared by the facilitator, player and display roles."""
from .api import ClientError, WordwranglerClient
from .session import SessionContext
from .sync import GameSync

__all__ = ["ClientError", "WordwranglerClient", "SessionContext", "GameSync"]
