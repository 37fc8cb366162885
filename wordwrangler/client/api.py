"""HTTP client for the Wordwrangler API."""

import logging
import time
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)


class ClientError(RuntimeError):
    """Structured failure surfaced to the calling role.

    ``kind`` is one of ``validation``, ``not_found``, ``precondition``,
    ``concurrency``, ``external``, ``server`` or ``network``.
    """

    def __init__(self, kind: str, message: str, status: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status
        self.code = code

    def __repr__(self) -> str:
        return f"ClientError(kind={self.kind!r}, status={self.status}, code={self.code!r})"


def _error_from_response(response: httpx.Response) -> ClientError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    code = body.get("error") if isinstance(body, dict) else None
    message = body.get("message") if isinstance(body, dict) else None
    status = response.status_code

    if status == 400:
        kind = "validation"
    elif status == 404:
        kind = "not_found"
    elif status == 409:
        kind = "concurrency" if code == "CONCURRENCY_CONFLICT" else "precondition"
    elif status == 502:
        kind = "external"
    elif status >= 500:
        kind = "server"
    else:
        kind = "validation"
    return ClientError(kind, message or f"HTTP {status}", status=status, code=code)


class WordwranglerClient:
    """Synchronous client for the REST API.

    Reads are retried with bounded exponential backoff on transport errors
    and 5xx responses; writes are sent once, since the state-changing
    endpoints are guarded server-side and a blind retry could double-apply.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_base: float = 0.5,
        max_backoff: float = 8.0,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._max_backoff = max_backoff
        self._sleep = sleep
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "WordwranglerClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _backoff(self, attempt: int) -> float:
        return min(self._max_backoff, self._backoff_base * (2 ** attempt))

    def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        retry: bool = False,
    ) -> Any:
        attempts = self._max_retries + 1 if retry else 1
        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                response = self._client.request(method, path, json=json, params=params)
            except httpx.TransportError as exc:
                if last_attempt:
                    logger.error("%s %s failed: %s", method, path, exc)
                    raise ClientError("network", "Could not reach the game server. Please retry.") from exc
                delay = self._backoff(attempt)
                logger.warning("%s %s failed (%s); retrying in %.1fs", method, path, exc, delay)
                self._sleep(delay)
                continue

            if response.status_code >= 500 and not last_attempt:
                delay = self._backoff(attempt)
                logger.warning("%s %s returned %d; retrying in %.1fs", method, path, response.status_code, delay)
                self._sleep(delay)
                continue
            if response.is_error:
                raise _error_from_response(response)
            return response.json()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("GET", path, params=params, retry=True)

    def _post(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        return self._request("POST", path, json=payload or {})

    # Games

    def create_game(self, total_rounds: int | None = None, timer_seconds: int | None = None,
                    facilitator_name: str | None = None) -> dict[str, Any]:
        payload = {"total_rounds": total_rounds, "timer_seconds": timer_seconds, "facilitator_name": facilitator_name}
        return self._post("/games", {k: v for k, v in payload.items() if v is not None})

    def list_games(self, status: str | None = None, limit: int = 20) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"limit": limit}
        if status:
            params["status"] = status
        return self._get("/games", params)

    def get_game(self, code: str) -> dict[str, Any]:
        return self._get(f"/games/{code}")

    def update_game(self, code: str, **fields: Any) -> dict[str, Any]:
        return self._request("PATCH", f"/games/{code}", json=fields)

    def delete_game(self, code: str) -> dict[str, Any]:
        return self._request("DELETE", f"/games/{code}")

    def join_game(self, code: str, player_id: int) -> dict[str, Any]:
        return self._post(f"/games/{code}/join", {"player_id": player_id})

    def leave_game(self, code: str, player_id: int) -> dict[str, Any]:
        return self._request("DELETE", f"/games/{code}/join", json={"player_id": player_id})

    def start_game(self, code: str) -> dict[str, Any]:
        return self._post(f"/games/{code}/start")

    def end_round(self, code: str, auto: bool = False) -> dict[str, Any]:
        return self._post(f"/games/{code}/end-round", {"auto": auto})

    def finish_judging(self, code: str, skipped: bool = False) -> dict[str, Any]:
        return self._post(f"/games/{code}/finish-judging", {"skipped": skipped})

    def next_round(self, code: str) -> dict[str, Any]:
        return self._post(f"/games/{code}/next-round")

    def show_winner(self, code: str) -> dict[str, Any]:
        return self._post(f"/games/{code}/show-winner")

    def end_game(self, code: str) -> dict[str, Any]:
        return self._post(f"/games/{code}/end")

    def timer(self, code: str, action: str, seconds: int | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": action}
        if seconds is not None:
            payload["seconds"] = seconds
        return self._post(f"/games/{code}/timer", payload)

    def set_task(self, code: str, task_id: int, round_number: int | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"task_id": task_id}
        if round_number is not None:
            payload["round_number"] = round_number
        return self._post(f"/games/{code}/task", payload)

    def submit(self, code: str, player_id: int, content: str) -> dict[str, Any]:
        return self._post(f"/games/{code}/submissions", {"player_id": player_id, "content": content})

    def list_submissions(self, code: str, round_number: int | None = None, all_rounds: bool = False) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if all_rounds:
            params["all"] = "true"
        elif round_number is not None:
            params["round"] = round_number
        return self._get(f"/games/{code}/submissions", params)

    def award(self, code: str, player_id: int, points: int, strict: bool = False) -> dict[str, Any]:
        return self._post(f"/games/{code}/award", {"player_id": player_id, "points": points, "strict": strict})

    def judge(self, code: str) -> dict[str, Any]:
        return self._post(f"/games/{code}/judge")

    def leaderboard(self, code: str) -> dict[str, Any]:
        return self._get(f"/games/{code}/leaderboard")

    def get_reflection(self, code: str) -> dict[str, Any]:
        return self._get(f"/games/{code}/reflection")["reflection"]

    def generate_reflection(self, code: str) -> dict[str, Any]:
        return self._post(f"/games/{code}/reflection")["reflection"]

    # Players and teams

    def create_player(self, display_name: str, avatar: str | None = None, email: str | None = None,
                      team_id: int | None = None) -> dict[str, Any]:
        payload = {"display_name": display_name, "avatar": avatar, "email": email, "team_id": team_id}
        return self._post("/players", {k: v for k, v in payload.items() if v is not None})

    def find_player_by_email(self, email: str) -> dict[str, Any]:
        return self._get("/players", {"email": email})

    def list_players(self) -> list[dict[str, Any]]:
        return self._get("/players")

    def get_player(self, player_id: int) -> dict[str, Any]:
        return self._get(f"/players/{player_id}")

    def update_player(self, player_id: int, **fields: Any) -> dict[str, Any]:
        return self._request("PATCH", f"/players/{player_id}", json=fields)

    def create_team(self, name: str) -> dict[str, Any]:
        return self._post("/teams", {"name": name})

    def list_teams(self) -> list[dict[str, Any]]:
        return self._get("/teams")

    def get_team(self, team_id: int) -> dict[str, Any]:
        return self._get(f"/teams/{team_id}")

    def delete_team(self, team_id: int) -> dict[str, Any]:
        return self._request("DELETE", f"/teams/{team_id}")

    # Catalog

    def list_tasks(self) -> list[dict[str, Any]]:
        return self._get("/tasks")

    def player_leaderboard(self) -> list[dict[str, Any]]:
        return self._get("/leaderboards/players")

    def team_leaderboard(self) -> list[dict[str, Any]]:
        return self._get("/leaderboards/teams")
