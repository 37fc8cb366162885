from wordwrangler.services.leaderboard_service import assign_ranks


def test_assign_ranks_competition_style():
    rows = [{"score": 9}, {"score": 7}, {"score": 7}, {"score": 2}]
    assert [r["rank"] for r in assign_ranks(rows)] == [1, 2, 2, 4]
    assert assign_ranks([]) == []


def _play_one_round(client, code, awards):
    client.post(f"/api/games/{code}/start")
    client.post(f"/api/games/{code}/end-round")
    for player_id, points in awards:
        client.post(f"/api/games/{code}/award", json={"player_id": player_id, "points": points})
    client.post(f"/api/games/{code}/finish-judging")


def test_game_leaderboard_ranks_and_ties(client, make_player, make_game):
    alice = make_player("Alice")
    bob = make_player("Bob")
    cara = make_player("Cara")
    code = make_game(total_rounds=1, players=[alice, bob, cara])["code"]
    _play_one_round(client, code, [(bob["id"], 4), (cara["id"], 4), (alice["id"], 2)])

    board = client.get(f"/api/games/{code}/leaderboard").get_json()
    assert board["status"] == "leaderboard"
    rows = board["leaderboard"]
    assert [(r["display_name"], r["score"], r["rank"]) for r in rows] == [
        ("Bob", 4, 1),
        ("Cara", 4, 1),
        ("Alice", 2, 3),
    ]
    assert board["team_leaderboard"] == []


def test_game_leaderboard_team_rollup(client, make_player, make_game):
    red = client.post("/api/teams", json={"name": "Red"}).get_json()
    blue = client.post("/api/teams", json={"name": "Blue"}).get_json()
    alice = make_player("Alice", team_id=red["id"])
    bob = make_player("Bob", team_id=red["id"])
    cara = make_player("Cara", team_id=blue["id"])
    dev = make_player("Dev")
    code = make_game(total_rounds=1, players=[alice, bob, cara, dev])["code"]
    _play_one_round(client, code, [(alice["id"], 3), (bob["id"], 2), (cara["id"], 4), (dev["id"], 9)])

    board = client.get(f"/api/games/{code}/leaderboard").get_json()
    assert board["leaderboard"][0]["display_name"] == "Dev"
    assert board["leaderboard"][0]["team_name"] is None
    assert board["team_leaderboard"] == [
        {"name": "Red", "score": 5, "players": 2, "rank": 1},
        {"name": "Blue", "score": 4, "players": 1, "rank": 2},
    ]


def test_all_time_leaderboards_count_completed_games_only(client, make_player, make_game):
    red = client.post("/api/teams", json={"name": "Red"}).get_json()
    alice = make_player("Alice", team_id=red["id"])
    bob = make_player("Bob", team_id=red["id"])
    cara = make_player("Cara")

    for points in (5, 3):
        code = make_game(total_rounds=1, players=[alice, bob, cara])["code"]
        _play_one_round(client, code, [(alice["id"], points), (bob["id"], 1), (cara["id"], 4)])
        client.post(f"/api/games/{code}/end")

    unfinished = make_game(total_rounds=1, players=[alice])["code"]
    _play_one_round(client, unfinished, [(alice["id"], 10)])

    players = client.get("/api/leaderboards/players").get_json()
    assert [(p["display_name"], p["total_score"], p["rank"]) for p in players] == [
        ("Alice", 8, 1),
        ("Cara", 8, 1),
        ("Bob", 2, 3),
    ]
    alice_row = players[0]
    assert alice_row["games_played"] == 2
    assert alice_row["average_score"] == 4
    assert alice_row["team_name"] == "Red"

    teams = client.get("/api/leaderboards/teams").get_json()
    assert len(teams) == 1
    assert teams[0]["team_name"] == "Red"
    assert teams[0]["total_score"] == 10
    assert teams[0]["games_played"] == 2
    assert teams[0]["player_count"] == 2
    assert teams[0]["average_score"] == 2.5
    assert teams[0]["rank"] == 1


def test_all_time_leaderboards_empty(client):
    assert client.get("/api/leaderboards/players").get_json() == []
    assert client.get("/api/leaderboards/teams").get_json() == []


def test_player_stats(client, make_player, make_game, fake_model):
    alice = make_player("Alice")
    code = make_game(total_rounds=1, players=[alice])["code"]
    client.post(f"/api/games/{code}/start")
    client.post(f"/api/games/{code}/submissions", json={"player_id": alice["id"], "content": "Save changes?"})
    fake_model.judge_score = 5
    client.post(f"/api/games/{code}/judge")
    client.post(f"/api/games/{code}/end")

    detail = client.get(f"/api/players/{alice['id']}").get_json()
    assert detail["display_name"] == "Alice"
    stats = detail["stats"]
    assert stats["games_played"] == 1
    assert stats["total_score"] == 5
    assert stats["total_submissions"] == 1
    assert stats["score_distribution"] == [0, 0, 0, 0, 1]
    assert stats["fives_count"] == 1
    assert stats["ones_count"] == 0
    assert detail["recent_games"][0]["game_code"] == code
    assert detail["recent_games"][0]["status"] == "completed"
