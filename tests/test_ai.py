import pytest

from wordwrangler.services.ai import judge
from wordwrangler.services.ai.client import AIResponseError, AIServiceError, generate_response, parse_json_object
from wordwrangler.services.ai.prompts import build_judge_prompt, score_distribution


def test_parse_json_object_strips_code_fences():
    assert parse_json_object('```json\n{"score": 3}\n```') == {"score": 3}
    assert parse_json_object('  {"score": 4} ') == {"score": 4}


def test_parse_json_object_rejects_non_objects():
    with pytest.raises(AIResponseError):
        parse_json_object("[1, 2, 3]")
    with pytest.raises(AIResponseError):
        parse_json_object("Greg has left the building.")


@pytest.mark.parametrize("raw, expected", [(0, 1), (3.4, 3), (4.6, 5), (11, 5), (-2, 1)])
def test_judgment_score_is_clamped(raw, expected):
    verdict = judge.Judgment.model_validate({"alex_says": "a", "greg_says": "g", "score": raw})
    assert verdict.score == expected


def test_judgment_rejects_non_numeric_scores():
    for raw in ("five", True, None):
        with pytest.raises(ValueError):
            judge.Judgment.model_validate({"alex_says": "a", "greg_says": "g", "score": raw})


def test_judge_submission_maps_schema_errors(flask_app, fake_model):
    fake_model.judge_text = '{"greg_says": "Only Greg showed up.", "score": 2}'
    with pytest.raises(AIResponseError):
        judge.judge_submission("Title", "Describe", None, "Alice", "Hi")


def test_judge_prompt_includes_criteria_only_when_present():
    with_criteria = build_judge_prompt("T", "D", "Be brief.", "Alice", "Hello")
    assert "JUDGING CRITERIA: Be brief." in with_criteria
    assert "CONTESTANT: Alice" in with_criteria
    assert "JUDGING CRITERIA" not in build_judge_prompt("T", "D", None, "Alice", "Hello")


def test_score_distribution_ignores_out_of_range():
    assert score_distribution([1, 5, 5, 3, None, 0, 6]) == [1, 0, 1, 0, 2]


def test_generate_response_requires_api_key(flask_app):
    flask_app.config["OPENAI_API_KEY"] = None
    with pytest.raises(AIServiceError):
        generate_response("system", "user")
