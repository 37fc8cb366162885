import json
from datetime import timedelta

import httpx
import pytest

from wordwrangler import create_app
from wordwrangler.extensions import db, socketio
from wordwrangler.services import game_service
from wordwrangler.services.ai import client as ai_client
from wordwrangler.services.ai.client import AIServiceError
from wordwrangler.services.ai.prompts import REFLECTION_SYSTEM_PROMPT
from wordwrangler.utils.timestamps import format_timestamp, utcnow

VALID_REFLECTION = {
    "opening_observation": "I have seen things today. Some of them were words.",
    "insights": [
        {
            "title": "Brevity Was A Stranger",
            "observation": "Nobody used fewer than forty words for a button.",
            "question": "Who are you writing for, yourselves?",
        }
    ],
    "closing_provocation": "Next time, surprise me. Pleasantly.",
}


class FakeModel:
    """Stands in for the OpenAI call; scripted per test."""

    def __init__(self):
        self.calls = []
        self.fail_when = None
        self.judge_score = 4
        self.judge_text = None
        self.reflection_text = json.dumps(VALID_REFLECTION)

    def __call__(self, system_prompt, user_prompt, model=None, max_tokens=500, timeout=None):
        self.calls.append({"model": model, "prompt": user_prompt})
        if self.fail_when and self.fail_when in user_prompt:
            raise AIServiceError("simulated outage")
        if system_prompt == REFLECTION_SYSTEM_PROMPT:
            return self.reflection_text
        if self.judge_text is not None:
            return self.judge_text
        return json.dumps({
            "alex_says": "Technically a sentence.",
            "greg_says": "I am moved. Slightly.",
            "score": self.judge_score,
            "score_reason": "fine",
        })


@pytest.fixture()
def flask_app():
    application = create_app("testing")
    with application.app_context():
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app, client):
    test_client = socketio.test_client(flask_app, flask_test_client=client)
    yield test_client
    if test_client.is_connected():
        test_client.disconnect()


@pytest.fixture()
def fake_model(monkeypatch):
    model = FakeModel()
    monkeypatch.setattr(ai_client, "generate_response", model)
    return model


@pytest.fixture()
def tasks(flask_app):
    game_service.seed_tasks()
    return game_service.list_tasks()


@pytest.fixture()
def make_player(client):
    def _make(name="Player", **extra):
        res = client.post("/api/players", json={"display_name": name, **extra})
        assert res.status_code in (200, 201), res.get_json()
        return res.get_json()
    return _make


@pytest.fixture()
def make_game(client, tasks):
    def _make(total_rounds=2, timer_seconds=60, players=()):
        res = client.post("/api/games", json={"total_rounds": total_rounds, "timer_seconds": timer_seconds})
        assert res.status_code == 201, res.get_json()
        game = res.get_json()
        for player in players:
            joined = client.post(f"/api/games/{game['code']}/join", json={"player_id": player["id"]})
            assert joined.status_code == 201, joined.get_json()
        return game
    return _make


@pytest.fixture()
def expire_timer(client):
    """Move a running round's start point far enough back that it has run out."""
    def _expire(code, seconds_ago=3600):
        started = format_timestamp(utcnow() - timedelta(seconds=seconds_ago))
        res = client.patch(f"/api/games/{code}", json={"timer_started_at": started})
        assert res.status_code == 200, res.get_json()
        return res.get_json()
    return _expire


@pytest.fixture()
def api_transport(client):
    """httpx transport that forwards requests to the Flask test client."""
    def handler(request: httpx.Request) -> httpx.Response:
        res = client.open(
            request.url.path,
            method=request.method,
            query_string=request.url.query.decode(),
            data=request.content,
            content_type="application/json",
        )
        return httpx.Response(res.status_code, content=res.data, headers={"content-type": res.content_type})
    return httpx.MockTransport(handler)
