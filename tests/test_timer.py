from datetime import datetime, timedelta
from types import SimpleNamespace

from wordwrangler.services import timer_service
from wordwrangler.utils.timestamps import format_timestamp

NOW = datetime(2026, 3, 1, 12, 0, 0)


def test_remaining_running_idle_and_paused():
    started = NOW - timedelta(seconds=42, milliseconds=700)
    assert timer_service.remaining_seconds(180, started, None, NOW) == 138
    assert timer_service.remaining_seconds(180, None, None, NOW) == 180
    assert timer_service.remaining_seconds(180, None, 37, NOW) == 37


def test_remaining_never_negative_and_ignores_clock_skew():
    assert timer_service.remaining_seconds(60, NOW - timedelta(minutes=5), None, NOW) == 0
    # Reader's clock behind the writer's
    assert timer_service.remaining_seconds(60, NOW + timedelta(seconds=3), None, NOW) == 60


def test_payload_remaining_matches_row_formula():
    payload = {
        "timer_seconds": 90,
        "timer_started_at": format_timestamp(NOW - timedelta(seconds=30)),
        "timer_paused_remaining": None,
    }
    assert timer_service.payload_remaining(payload, NOW) == 60


def test_pause_resume_cycles_keep_remaining(client, make_player, make_game, monkeypatch):
    clock = {"now": NOW}
    monkeypatch.setattr(timer_service, "utcnow", lambda: clock["now"])
    alice = make_player("Alice")
    game = make_game(timer_seconds=120, players=[alice])
    code = game["code"]
    client.post(f"/api/games/{code}/start")

    for cycle in range(1, 4):
        clock["now"] += timedelta(seconds=5)
        paused = client.post(f"/api/games/{code}/timer", json={"action": "pause"}).get_json()
        assert paused["timer_started_at"] is None
        left = paused["timer_paused_remaining"]
        assert left == 120 - 5 * cycle

        # A long pause must not eat into the countdown
        clock["now"] += timedelta(minutes=10)
        resumed = client.post(f"/api/games/{code}/timer", json={"action": "resume"}).get_json()
        assert resumed["timer_paused_remaining"] is None
        assert resumed["timer_seconds"] == left
        assert resumed["timer"]["running"] is True
        assert resumed["timer"]["remaining_seconds"] == left

        state = client.get(f"/api/games/{code}").get_json()
        assert state["timer"]["remaining_seconds"] == left


def test_resume_counts_from_the_resume_instant():
    game = SimpleNamespace(
        timer_seconds=120, round_duration=120, timer_started_at=None, timer_paused_remaining=None
    )

    def apply(changes):
        for name, value in changes.items():
            setattr(game, name, value)

    apply(timer_service.start(game, now=NOW))
    apply(timer_service.pause(game, now=NOW + timedelta(seconds=30)))
    assert game.timer_paused_remaining == 90

    resumed_at = NOW + timedelta(seconds=1000)
    apply(timer_service.resume(game, now=resumed_at))
    assert game.timer_seconds == 90
    assert game.timer_started_at == resumed_at
    assert timer_service.game_remaining(game, resumed_at) == 90
    assert timer_service.game_remaining(game, resumed_at + timedelta(seconds=10)) == 80


def test_add_time_while_running_and_paused(client, make_player, make_game):
    alice = make_player("Alice")
    code = make_game(timer_seconds=60, players=[alice])["code"]
    client.post(f"/api/games/{code}/start")

    added = client.post(f"/api/games/{code}/timer", json={"action": "add", "seconds": 30}).get_json()
    assert added["timer_seconds"] == 90

    client.post(f"/api/games/{code}/timer", json={"action": "pause"})
    before = client.get(f"/api/games/{code}").get_json()["timer_paused_remaining"]
    added = client.post(f"/api/games/{code}/timer", json={"action": "add", "seconds": 15}).get_json()
    assert added["timer_paused_remaining"] == before + 15
    assert added["timer_started_at"] is None


def test_reset_and_start(client, make_player, make_game):
    alice = make_player("Alice")
    code = make_game(timer_seconds=60, players=[alice])["code"]
    client.post(f"/api/games/{code}/start")
    client.post(f"/api/games/{code}/timer", json={"action": "add", "seconds": 30})

    reset = client.post(f"/api/games/{code}/timer", json={"action": "reset"}).get_json()
    assert reset["timer_seconds"] == 60
    assert reset["timer_started_at"] is None
    assert reset["timer"]["remaining_seconds"] == 60

    started = client.post(f"/api/games/{code}/timer", json={"action": "start"}).get_json()
    assert started["timer"]["running"] is True

    again = client.post(f"/api/games/{code}/timer", json={"action": "start"})
    assert again.status_code == 409


def test_timer_controls_require_active_round(client, make_player, make_game):
    code = make_game(players=[make_player("Alice")])["code"]
    res = client.post(f"/api/games/{code}/timer", json={"action": "pause"})
    assert res.status_code == 409
    assert res.get_json()["error"] == "PHASE_MISMATCH"


def test_timer_rejects_bad_actions_and_seconds(client, make_player, make_game):
    code = make_game(players=[make_player("Alice")])["code"]
    client.post(f"/api/games/{code}/start")

    assert client.post(f"/api/games/{code}/timer", json={"action": "explode"}).status_code == 400
    assert client.post(f"/api/games/{code}/timer", json={}).status_code == 400
    assert client.post(f"/api/games/{code}/timer", json={"action": "add"}).status_code == 400
    assert client.post(f"/api/games/{code}/timer", json={"action": "add", "seconds": -5}).status_code == 400


def test_configure_between_rounds_only(client, make_player, make_game):
    code = make_game(timer_seconds=60, players=[make_player("Alice")])["code"]

    configured = client.post(f"/api/games/{code}/timer", json={"action": "configure", "seconds": 240}).get_json()
    assert configured["timer_seconds"] == 240
    assert configured["timer"]["round_duration"] == 240

    client.post(f"/api/games/{code}/start")
    res = client.post(f"/api/games/{code}/timer", json={"action": "configure", "seconds": 30})
    assert res.status_code == 409

    state = client.get(f"/api/games/{code}").get_json()
    assert state["timer_seconds"] == 240


def test_new_round_restarts_with_configured_duration(client, make_player, make_game):
    code = make_game(timer_seconds=60, players=[make_player("Alice")])["code"]
    client.post(f"/api/games/{code}/start")
    client.post(f"/api/games/{code}/timer", json={"action": "add", "seconds": 100})
    client.post(f"/api/games/{code}/end-round")

    client.post(f"/api/games/{code}/timer", json={"action": "configure", "seconds": 45})
    client.post(f"/api/games/{code}/finish-judging")
    state = client.post(f"/api/games/{code}/next-round").get_json()

    assert state["current_round"] == 2
    assert state["timer_seconds"] == 45
    assert state["timer"]["running"] is True


def test_both_reference_points_rejected(client, make_player, make_game):
    code = make_game(players=[make_player("Alice")])["code"]
    client.post(f"/api/games/{code}/start")
    res = client.patch(f"/api/games/{code}", json={"timer_paused_remaining": 20})
    assert res.status_code == 400
