def _events(sio_client, name):
    return [pkt["args"][0] for pkt in sio_client.get_received() if pkt["name"] == name]


def test_join_room_replies_with_game_state(sio_client, make_game):
    code = make_game()["code"]
    sio_client.get_received()

    sio_client.emit("join_game_room", {"game_code": code.lower()})
    states = _events(sio_client, "game_state")
    assert len(states) == 1
    assert states[0]["code"] == code
    assert states[0]["status"] == "lobby"


def test_join_unknown_room(sio_client):
    sio_client.emit("join_game_room", {"game_code": "ZZZZZZ"})
    errors = _events(sio_client, "room_error")
    assert errors == [{"error": "GAME_NOT_FOUND", "message": "Game not found."}]

    sio_client.emit("join_game_room", {})
    assert _events(sio_client, "room_error")[0]["error"] == "VALIDATION_ERROR"


def test_row_changes_reach_the_room(client, sio_client, make_player, make_game):
    alice = make_player("Alice")
    code = make_game()["code"]
    sio_client.emit("join_game_room", {"game_code": code})
    sio_client.get_received()

    client.post(f"/api/games/{code}/join", json={"player_id": alice["id"]})
    changes = _events(sio_client, "row_changed")
    assert changes[0]["table"] == "game_players"
    assert changes[0]["event"] == "INSERT"
    assert changes[0]["record"]["player_id"] == alice["id"]

    client.post(f"/api/games/{code}/start")
    changes = _events(sio_client, "row_changed")
    assert [(c["table"], c["event"]) for c in changes] == [("games", "UPDATE")]
    assert changes[0]["record"]["status"] == "active"

    client.post(f"/api/games/{code}/submissions", json={"player_id": alice["id"], "content": "Hi there"})
    submission = _events(sio_client, "row_changed")[0]
    assert submission["table"] == "submissions"
    assert "content" not in submission["record"]


def test_other_rooms_are_not_notified(client, sio_client, make_player, make_game):
    watched = make_game()["code"]
    other = make_game()["code"]
    sio_client.emit("join_game_room", {"game_code": watched})
    sio_client.get_received()

    client.post(f"/api/games/{other}/join", json={"player_id": make_player("Bob")["id"]})
    assert _events(sio_client, "row_changed") == []


def test_leave_room_stops_events(client, sio_client, make_player, make_game):
    code = make_game()["code"]
    sio_client.emit("join_game_room", {"game_code": code})
    sio_client.emit("leave_game_room", {"game_code": code})
    sio_client.get_received()

    client.post(f"/api/games/{code}/join", json={"player_id": make_player("Alice")["id"]})
    assert _events(sio_client, "row_changed") == []


def test_judge_flips_status_and_broadcasts(client, sio_client, make_player, make_game, fake_model):
    alice = make_player("Alice")
    code = make_game(players=[alice])["code"]
    client.post(f"/api/games/{code}/start")
    client.post(f"/api/games/{code}/submissions", json={"player_id": alice["id"], "content": "Hi"})
    sio_client.emit("join_game_room", {"game_code": code})
    sio_client.get_received()

    client.post(f"/api/games/{code}/judge")
    changes = _events(sio_client, "row_changed")
    statuses = [c["record"]["status"] for c in changes if c["table"] == "games"]
    assert statuses == ["judging", "active"]
    assert any(c["table"] == "submissions" and c["record"]["ai_score"] == 4 for c in changes)
    assert any(c["table"] == "game_players" and c["record"]["score"] == 4 for c in changes)


def test_delete_broadcasts(client, sio_client, make_game):
    game = make_game()
    sio_client.emit("join_game_room", {"game_code": game["code"]})
    sio_client.get_received()

    client.delete(f"/api/games/{game['code']}")
    changes = _events(sio_client, "row_changed")
    assert changes == [{"table": "games", "event": "DELETE", "record": {"id": game["id"], "code": game["code"]}}]
