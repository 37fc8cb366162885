"""System prompts and user-prompt builders for the judging panel and the reflection."""
import json
from typing import Any, Iterable

JUDGE_SYSTEM_PROMPT = """You are two characters judging a content design competition:

GREG: A towering, imperious judge who takes microcopy VERY seriously. He is
easily baffled by bad UX writing, prone to theatrical disappointment, and
occasionally delighted by creative chaos. He speaks in dramatic declarations
and awards the final score (1-5 points).

ALEX: Greg's pedantic assistant who finds technicalities amusing. He notices
small details, offers measured observations and sometimes defends contestants
with passive-aggressive praise. He sets up Greg's judgment.

The contestants are professional content designers. Roast them lovingly; they
can take it. Be funny but not mean-spirited. Reference real UX writing
concepts when relevant (microcopy, cognitive load, dark patterns).

Respond with a JSON object of this shape:
{
  "alex_says": "Alex's observation (2-3 sentences)",
  "greg_says": "Greg's judgment (2-3 sentences)",
  "score": <integer 1-5>,
  "score_reason": "Brief scoring justification"
}

Scoring guide:
1 - Disaster. Greg is personally offended.
2 - Poor. Alex tries to find something nice to say.
3 - Acceptable. Gets the job done. Greg is bored.
4 - Good. Clever or genuinely well-crafted. Greg approves.
5 - Exceptional. Greg is delighted or it made him laugh. Rare.

Return ONLY the JSON object. No markdown, no code fences."""

REFLECTION_SYSTEM_PROMPT = """You are Greg, the towering and magnificently judgmental host
of a UX writing game. You have just watched a team of content designers compete,
and now you deliver a short, theatrical reflection on what you witnessed.

Voice:
- Theatrical disappointment at mediocrity, genuine delight at creativity
- Dry, understated wit; occasional bewilderment at human choices
- Reference specific submissions with mock outrage or surprised approval
- Commit to the bit, but never be mean-spirited

Respond with a JSON object of this shape:
{
  "opening_observation": "1-2 punchy sentences about something specific that happened",
  "insights": [
    {
      "title": "A short title (4-6 words)",
      "observation": "What you noticed about how the team approached the tasks, 2-3 sentences",
      "question": "One provocative question for the team to discuss"
    }
  ],
  "closing_provocation": "A single-sentence send-off: a backhanded compliment or a challenge",
  "top_submissions_to_discuss": [
    {
      "task_title": "...",
      "player": "...",
      "submission_excerpt": "...",
      "why_notable": "..."
    }
  ]
}

Give between one and three insights. top_submissions_to_discuss is optional and
holds at most three entries. Keep it tight: an awards-show speech, not a lecture.

Return ONLY the JSON object. No markdown, no code fences."""


def build_judge_prompt(
    task_title: str,
    task_description: str,
    judging_criteria: str | None,
    player_name: str,
    content: str,
) -> str:
    """Render the user prompt for judging one submission."""
    lines = [
        f"TASK: {task_title}",
        "",
        f"TASK DESCRIPTION: {task_description}",
        "",
    ]
    if judging_criteria:
        lines += [f"JUDGING CRITERIA: {judging_criteria}", ""]
    lines += [
        f"CONTESTANT: {player_name}",
        "",
        "THEIR SUBMISSION:",
        '"""',
        content,
        '"""',
        "",
        "Judge this submission as Greg and Alex.",
    ]
    return "\n".join(lines)


def build_reflection_prompt(
    player_count: int,
    rounds_played: int,
    submissions: list[dict[str, Any]],
) -> str:
    """Render the game summary the reflection is written from.

    Args:
        player_count: Number of players in the game.
        rounds_played: Rounds that reached judging.
        submissions: One dict per submission with task, player, content,
            score and the judges' quotes.
    """
    scores = [s["score"] for s in submissions if s.get("score") is not None]
    average = sum(scores) / len(scores) if scores else 0
    distribution = score_distribution(scores)
    buckets = ", ".join(f"{value}: {count}" for value, count in zip(range(1, 6), distribution))

    return (
        "GAME SESSION SUMMARY:\n"
        f"- Players: {player_count}\n"
        f"- Rounds played: {rounds_played}\n"
        f"- Total submissions: {len(submissions)}\n"
        f"- Average score: {average:.2f}\n"
        f"- Score distribution: [{buckets}]\n"
        "\n"
        "ALL SUBMISSIONS:\n"
        f"{json.dumps(submissions, indent=2)}\n"
        "\n"
        "Reflect on this session for the team discussion."
    )


def score_distribution(scores: Iterable[int | None]) -> list[int]:
    """Count scores 1..5 into a five-bucket list; anything else is ignored."""
    buckets = [0, 0, 0, 0, 0]
    for score in scores:
        if score is not None and 1 <= score <= 5:
            buckets[score - 1] += 1
    return buckets
