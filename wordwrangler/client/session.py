"""Per-device session context: who this device is and which game it was last in."""
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

from .api import ClientError, WordwranglerClient

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """Pointers a device keeps between launches.

    Nothing here is trusted: :meth:`verify` checks every pointer against the
    server and drops the ones that no longer resolve.
    """

    player_id: int | None = None
    current_game_code: str | None = None
    facilitator_game_code: str | None = None

    @classmethod
    def load(cls, path: str | Path) -> "SessionContext":
        """Read a saved session; a missing or unreadable file yields an empty one."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return cls()
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", path, exc)
            return cls()
        if not isinstance(data, dict):
            return cls()
        return cls(
            player_id=data.get("player_id"),
            current_game_code=data.get("current_game_code"),
            facilitator_game_code=data.get("facilitator_game_code"),
        )

    def save(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(asdict(self)), encoding="utf-8")

    def clear(self) -> None:
        self.player_id = None
        self.current_game_code = None
        self.facilitator_game_code = None

    def verify(self, client: WordwranglerClient) -> "SessionContext":
        """Drop pointers to unknown players and to deleted or completed games.

        Network failures propagate; a pointer is only discarded on a definite
        answer from the server.
        """
        if self.player_id is not None and not self._player_exists(client, self.player_id):
            logger.info("Discarding unknown player %s from session", self.player_id)
            self.player_id = None
        if self.current_game_code and not self._game_is_live(client, self.current_game_code):
            self.current_game_code = None
        if self.facilitator_game_code and not self._game_is_live(client, self.facilitator_game_code):
            self.facilitator_game_code = None
        return self

    @staticmethod
    def _player_exists(client: WordwranglerClient, player_id: int) -> bool:
        try:
            client.get_player(player_id)
        except ClientError as exc:
            if exc.kind == "not_found":
                return False
            raise
        return True

    @staticmethod
    def _game_is_live(client: WordwranglerClient, code: str) -> bool:
        try:
            game = client.get_game(code)
        except ClientError as exc:
            if exc.kind == "not_found":
                logger.info("Discarding deleted game %s from session", code)
                return False
            raise
        if game.get("status") == "completed":
            logger.info("Discarding completed game %s from session", code)
            return False
        return True
