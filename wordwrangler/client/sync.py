"""Keeps a local copy of one game's state in step with the server.

Polling and push notifications both funnel into the same idempotent
:meth:`GameSync.refresh`, so a missed or duplicated push only costs a
redundant fetch. The countdown is always derived locally from the stored
timer reference point with the same formula the server uses.
"""
import logging
import threading
from datetime import datetime
from typing import Any, Callable

import socketio

from ..services.timer_service import payload_remaining
from .api import ClientError, WordwranglerClient

logger = logging.getLogger(__name__)


class GameSync:
    """Poll-and-push view of a single game for any client role."""

    def __init__(
        self,
        client: WordwranglerClient,
        game_code: str,
        poll_interval: float = 2.0,
        on_change: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.client = client
        self.game_code = game_code.upper()
        self.poll_interval = poll_interval
        self.on_change = on_change
        self.state: dict[str, Any] | None = None
        self._lock = threading.Lock()
        self._stop = threading.Event()

    def refresh(self) -> dict[str, Any]:
        """Fetch the full game view and replace the local copy."""
        state = self.client.get_game(self.game_code)
        self.apply(state)
        return state

    def apply(self, state: dict[str, Any]) -> None:
        """Install a full game view (from a fetch or a ``game_state`` push)."""
        with self._lock:
            changed = state != self.state
            self.state = state
        if changed and self.on_change:
            self.on_change(state)

    def remaining_seconds(self, now: datetime | None = None) -> int | None:
        if self.state is None:
            return None
        return payload_remaining(self.state, now)

    def is_expired(self, now: datetime | None = None) -> bool:
        """True when the current round's running countdown has reached zero."""
        state = self.state
        if not state or state.get("timer_started_at") is None:
            return False
        running = state.get("status") == "active" or (state.get("status") == "judging" and state.get("ai_judging"))
        if not running:
            return False
        return payload_remaining(state, now) == 0

    def maybe_end_round(self, now: datetime | None = None) -> bool:
        """Ask the server to end an expired round. Safe to call from every client.

        Returns:
            True if this call ended the round.
        """
        if not self.is_expired(now):
            return False
        try:
            state = self.client.end_round(self.game_code, auto=True)
        except ClientError as exc:
            if exc.kind != "precondition":
                raise
            # Another client got there first
            logger.debug("auto end-round for %s declined: %s", self.game_code, exc.message)
            self.refresh()
            return False
        self.apply(state)
        return True

    def attach(self, sio: socketio.Client) -> None:
        """Subscribe a python-socketio ``Client`` to this game's room.

        The room is (re)joined on every connect, so a dropped connection picks
        up pushes again once it reconnects. Any row change triggers a refresh;
        a ``game_state`` reply is applied directly.
        """

        def on_connect() -> None:
            sio.emit("join_game_room", {"game_code": self.game_code})

        def on_row_changed(_event: dict[str, Any]) -> None:
            try:
                self.refresh()
            except ClientError as exc:
                logger.warning("refresh after push failed for %s: %s", self.game_code, exc.message)

        sio.on("row_changed", on_row_changed)
        sio.on("game_state", self.apply)
        sio.on("connect", on_connect)
        if sio.connected:
            on_connect()

    def connect(self, url: str) -> socketio.Client:
        """Open a Socket.IO connection to ``url`` and attach it to this game."""
        sio = socketio.Client(reconnection=True)
        self.attach(sio)
        sio.connect(url)
        return sio

    def run(self) -> None:
        """Poll until :meth:`stop` is called; failures are logged and the loop continues."""
        while not self._stop.is_set():
            try:
                self.refresh()
            except ClientError as exc:
                logger.warning("poll for %s failed: %s", self.game_code, exc.message)
            self._stop.wait(self.poll_interval)

    def stop(self) -> None:
        self._stop.set()
