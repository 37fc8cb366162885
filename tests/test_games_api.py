def test_create_game_defaults(client, tasks):
    res = client.post("/api/games", json={})
    assert res.status_code == 201
    game = res.get_json()
    assert len(game["code"]) == 6
    assert game["code"] == game["code"].upper()
    assert game["status"] == "lobby"
    assert game["current_round"] == 0
    assert game["total_rounds"] == 5
    assert game["timer_seconds"] == 180
    assert game["timer"]["remaining_seconds"] == 180
    assert [gt["round_number"] for gt in game["game_tasks"]] == [1, 2, 3, 4, 5]
    assert len({gt["task_id"] for gt in game["game_tasks"]}) == 5
    assert game["current_task"] is None


def test_create_game_without_catalog_leaves_rounds_unassigned(client):
    game = client.post("/api/games", json={"total_rounds": 3}).get_json()
    assert game["game_tasks"] == []


def test_create_game_validation(client):
    assert client.post("/api/games", json={"total_rounds": 0}).status_code == 400
    assert client.post("/api/games", json={"total_rounds": 999}).status_code == 400
    assert client.post("/api/games", json={"timer_seconds": "soon"}).status_code == 400
    assert client.post("/api/games", json=[1, 2]).status_code == 400


def test_get_game_is_case_insensitive(client, make_game):
    code = make_game()["code"]
    res = client.get(f"/api/games/{code.lower()}")
    assert res.status_code == 200
    assert res.get_json()["code"] == code


def test_unknown_game_returns_404(client):
    res = client.get("/api/games/NOPE99")
    assert res.status_code == 404
    assert res.get_json()["error"] == "GAME_NOT_FOUND"


def test_list_games_filters_by_status(client, make_player, make_game):
    lobby = make_game()["code"]
    started = make_game(players=[make_player("Alice")])["code"]
    client.post(f"/api/games/{started}/start")

    everything = client.get("/api/games").get_json()
    assert {g["code"] for g in everything} == {lobby, started}

    active = client.get("/api/games?status=active").get_json()
    assert [g["code"] for g in active] == [started]
    assert active[0]["player_count"] == 1

    assert client.get("/api/games?status=bogus").status_code == 400


def test_join_is_idempotent(client, make_player, make_game):
    alice = make_player("Alice")
    code = make_game()["code"]

    first = client.post(f"/api/games/{code}/join", json={"player_id": alice["id"]})
    assert first.status_code == 201
    again = client.post(f"/api/games/{code}/join", json={"player_id": alice["id"]})
    assert again.status_code == 200
    assert again.get_json()["id"] == first.get_json()["id"]

    state = client.get(f"/api/games/{code}").get_json()
    assert state["player_count"] == 1
    assert state["game_players"][0]["player"]["display_name"] == "Alice"
    assert state["game_players"][0]["score"] == 0


def test_join_after_start_only_reattaches(client, make_player, make_game):
    alice = make_player("Alice")
    bob = make_player("Bob")
    code = make_game(players=[alice])["code"]
    client.post(f"/api/games/{code}/start")

    assert client.post(f"/api/games/{code}/join", json={"player_id": alice["id"]}).status_code == 200
    late = client.post(f"/api/games/{code}/join", json={"player_id": bob["id"]})
    assert late.status_code == 409


def test_join_unknown_player(client, make_game):
    code = make_game()["code"]
    res = client.post(f"/api/games/{code}/join", json={"player_id": 4242})
    assert res.status_code == 404
    assert res.get_json()["error"] == "PLAYER_NOT_FOUND"
    assert client.post(f"/api/games/{code}/join", json={}).status_code == 400


def test_leave_only_in_lobby(client, make_player, make_game):
    alice = make_player("Alice")
    bob = make_player("Bob")
    code = make_game(players=[alice, bob])["code"]

    res = client.delete(f"/api/games/{code}/join", json={"player_id": bob["id"]})
    assert res.status_code == 200
    assert client.get(f"/api/games/{code}").get_json()["player_count"] == 1

    assert client.delete(f"/api/games/{code}/join", json={"player_id": bob["id"]}).status_code == 404

    client.post(f"/api/games/{code}/start")
    assert client.delete(f"/api/games/{code}/join", json={"player_id": alice["id"]}).status_code == 409


def test_delete_game(client, make_player, make_game):
    alice = make_player("Alice")
    code = make_game(players=[alice])["code"]

    assert client.delete(f"/api/games/{code}").get_json() == {"success": True}
    assert client.get(f"/api/games/{code}").status_code == 404
    # The player survives the game
    assert client.get(f"/api/players/{alice['id']}").status_code == 200


def test_assign_task_defaults_to_next_round(client, tasks, make_player, make_game):
    code = make_game(total_rounds=2, players=[make_player("Alice")])["code"]
    task = tasks[0]

    res = client.post(f"/api/games/{code}/task", json={"task_id": task.id})
    assert res.status_code == 200
    body = res.get_json()
    assert body["round_number"] == 1
    assert body["task"]["title"] == task.title

    started = client.post(f"/api/games/{code}/start").get_json()
    assert started["current_task"]["task_id"] == task.id


def test_assign_task_guards(client, tasks, make_player, make_game):
    alice = make_player("Alice")
    code = make_game(total_rounds=2, players=[alice])["code"]

    assert client.post(f"/api/games/{code}/task", json={"task_id": 9999}).status_code == 404
    assert client.post(f"/api/games/{code}/task", json={"task_id": tasks[0].id, "round_number": 3}).status_code == 400

    client.post(f"/api/games/{code}/start")
    client.post(f"/api/games/{code}/submissions", json={"player_id": alice["id"], "content": "Oops."})
    locked = client.post(f"/api/games/{code}/task", json={"task_id": tasks[1].id, "round_number": 1})
    assert locked.status_code == 409

    client.post(f"/api/games/{code}/end-round")
    client.post(f"/api/games/{code}/finish-judging")
    client.post(f"/api/games/{code}/next-round")
    past = client.post(f"/api/games/{code}/task", json={"task_id": tasks[1].id, "round_number": 1})
    assert past.status_code == 409


def test_list_tasks(client, tasks):
    res = client.get("/api/tasks")
    titles = [t["title"] for t in res.get_json()]
    assert titles == sorted(titles)
    assert len(titles) == len(tasks)


def test_seed_tasks_command_is_idempotent(flask_app):
    runner = flask_app.test_cli_runner()
    first = runner.invoke(args=["seed-tasks"])
    assert "Seeded 10 task(s)." in first.output
    second = runner.invoke(args=["seed-tasks"])
    assert "Seeded 0 task(s)." in second.output
