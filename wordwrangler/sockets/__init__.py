"""Socket.IO layer: game rooms and row-change broadcasts."""


def register_handlers() -> None:
    """Bind the room join/leave handlers to the shared socketio instance."""
    from . import handlers  # noqa: F401
