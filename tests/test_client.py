from datetime import timedelta

import httpx
import pytest

from wordwrangler.client import ClientError, GameSync, SessionContext, WordwranglerClient
from wordwrangler.utils.timestamps import format_timestamp, parse_timestamp


def _client(transport, **kwargs):
    return WordwranglerClient("http://game.test/api", transport=transport, sleep=lambda _delay: None, **kwargs)


def _api_client(api_transport):
    # The Flask routes live under /api already
    return WordwranglerClient("http://game.test/api", transport=api_transport, sleep=lambda _delay: None)


def test_reads_retry_on_server_errors():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if len(calls) < 3:
            return httpx.Response(503, json={"error": "INTERNAL_ERROR", "message": "busy"})
        return httpx.Response(200, json={"code": "ABC234", "status": "lobby"})

    api = _client(httpx.MockTransport(handler))
    assert api.get_game("ABC234")["status"] == "lobby"
    assert calls == ["/api/games/ABC234"] * 3


def test_reads_give_up_after_bounded_retries():
    delays = []

    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    api = WordwranglerClient(
        "http://game.test/api",
        transport=httpx.MockTransport(handler),
        max_retries=3,
        backoff_base=0.5,
        max_backoff=1.5,
        sleep=delays.append,
    )
    with pytest.raises(ClientError) as excinfo:
        api.list_games()
    assert excinfo.value.kind == "network"
    assert delays == [0.5, 1.0, 1.5]


def test_writes_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request.method)
        return httpx.Response(500, json={"error": "INTERNAL_ERROR", "message": "boom"})

    api = _client(httpx.MockTransport(handler))
    with pytest.raises(ClientError) as excinfo:
        api.start_game("ABC234")
    assert excinfo.value.kind == "server"
    assert calls == ["POST"]


@pytest.mark.parametrize(
    "status, code, kind",
    [
        (400, "VALIDATION_ERROR", "validation"),
        (404, "GAME_NOT_FOUND", "not_found"),
        (409, "PHASE_MISMATCH", "precondition"),
        (409, "CONCURRENCY_CONFLICT", "concurrency"),
        (502, "GENERATION_FAILED", "external"),
    ],
)
def test_error_kinds(status, code, kind):
    transport = httpx.MockTransport(lambda request: httpx.Response(status, json={"error": code, "message": "nope"}))
    with pytest.raises(ClientError) as excinfo:
        _client(transport).award("ABC234", 1, 5)
    assert excinfo.value.kind == kind
    assert excinfo.value.code == code
    assert excinfo.value.message == "nope"


def test_client_drives_the_real_api(api_transport, tasks):
    api = _api_client(api_transport)
    alice = api.create_player("Alice", email="alice@example.com")
    game = api.create_game(total_rounds=1, timer_seconds=30)
    api.join_game(game["code"], alice["id"])

    started = api.start_game(game["code"])
    assert started["status"] == "active"
    api.submit(game["code"], alice["id"], "Are you sure?")
    listing = api.list_submissions(game["code"])
    assert listing["submissions"][0]["content"] == "Are you sure?"

    with pytest.raises(ClientError) as excinfo:
        api.award(game["code"], alice["id"], 3)
    assert excinfo.value.kind == "precondition"

    assert api.find_player_by_email("ALICE@example.com")["id"] == alice["id"]


def test_session_verify_drops_stale_pointers(api_transport, tmp_path):
    api = _api_client(api_transport)
    alice = api.create_player("Alice")
    live = api.create_game(total_rounds=1)
    finished = api.create_game(total_rounds=1)
    api.end_game(finished["code"])

    session = SessionContext(player_id=alice["id"], current_game_code=live["code"], facilitator_game_code=finished["code"])
    path = tmp_path / "session.json"
    session.save(path)

    restored = SessionContext.load(path).verify(api)
    assert restored.player_id == alice["id"]
    assert restored.current_game_code == live["code"]
    assert restored.facilitator_game_code is None

    api.delete_game(live["code"])
    gone = SessionContext(player_id=9999, current_game_code=live["code"]).verify(api)
    assert gone == SessionContext()


def test_session_load_tolerates_missing_and_corrupt_files(tmp_path):
    assert SessionContext.load(tmp_path / "missing.json") == SessionContext()
    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json", encoding="utf-8")
    assert SessionContext.load(corrupt) == SessionContext()


def test_game_sync_countdown_and_auto_end(api_transport, client, make_player, make_game, expire_timer):
    alice = make_player("Alice")
    code = make_game(timer_seconds=60, players=[alice])["code"]
    client.post(f"/api/games/{code}/start")

    seen = []
    sync = GameSync(_api_client(api_transport), code.lower(), on_change=seen.append)
    state = sync.refresh()
    started = parse_timestamp(state["timer_started_at"])
    assert sync.remaining_seconds(started + timedelta(seconds=15)) == 45
    assert not sync.is_expired(started + timedelta(seconds=15))
    assert sync.maybe_end_round(started + timedelta(seconds=15)) is False

    expire_timer(code)
    sync.refresh()
    assert sync.is_expired()
    assert sync.maybe_end_round() is True
    assert sync.state["status"] == "judging"

    # A second observer arriving late sees the round already ended
    late = GameSync(_api_client(api_transport), code)
    late.apply({**state, "timer_started_at": format_timestamp(started - timedelta(hours=1))})
    assert late.maybe_end_round() is False
    assert late.state["status"] == "judging"

    assert [s["status"] for s in seen] == ["active", "active", "judging"]


def test_game_sync_apply_only_notifies_on_change():
    seen = []
    sync = GameSync(_client(httpx.MockTransport(lambda r: httpx.Response(200, json={}))), "abc234", on_change=seen.append)
    payload = {"status": "lobby", "timer_seconds": 60, "timer_started_at": None, "timer_paused_remaining": None}
    sync.apply(payload)
    sync.apply(dict(payload))
    assert len(seen) == 1
    assert sync.remaining_seconds() == 60
    assert sync.is_expired() is False


def test_game_sync_expires_while_ai_batch_holds_the_round():
    started = parse_timestamp("2026-03-01T12:00:00Z")
    sync = GameSync(_client(httpx.MockTransport(lambda r: httpx.Response(200, json={}))), "abc234")
    payload = {
        "status": "judging",
        "ai_judging": True,
        "timer_seconds": 60,
        "timer_started_at": format_timestamp(started),
        "timer_paused_remaining": None,
    }
    sync.apply(payload)
    assert sync.is_expired(started + timedelta(seconds=30)) is False
    assert sync.is_expired(started + timedelta(seconds=61)) is True

    sync.apply({**payload, "ai_judging": False})
    assert sync.is_expired(started + timedelta(seconds=61)) is False
