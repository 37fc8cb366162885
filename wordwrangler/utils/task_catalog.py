"""Built-in writing-task catalog and a random picker for round prompts."""
import random
from typing import Any, List

DEFAULT_TASKS: List[dict[str, Any]] = [
    {
        "title": "The Apologetic 404",
        "description": "Write the headline and one line of body copy for a 404 page that makes the user feel it was our fault.",
        "category": "error states",
        "suggested_time_seconds": 120,
        "judging_criteria": "Warmth, brevity, and a clear way forward.",
    },
    {
        "title": "Cancel Without Guilt",
        "description": "Write the confirmation dialog for cancelling a subscription. No dark patterns allowed.",
        "category": "dialogs",
        "suggested_time_seconds": 180,
        "judging_criteria": "Honesty, clarity of consequences, button labels that say what they do.",
    },
    {
        "title": "Empty Inbox Joy",
        "description": "Write the empty-state message shown when a user reaches inbox zero.",
        "category": "empty states",
        "suggested_time_seconds": 120,
        "judging_criteria": "Delight without smugness.",
    },
    {
        "title": "Password Rules, Kindly",
        "description": "Rewrite a password requirement error so it helps rather than scolds.",
        "category": "error states",
        "suggested_time_seconds": 150,
        "judging_criteria": "Actionable guidance, tone, scannability.",
    },
    {
        "title": "Onboarding in Ten Words",
        "description": "Explain what a budgeting app does in ten words or fewer for the first onboarding screen.",
        "category": "onboarding",
        "suggested_time_seconds": 120,
        "judging_criteria": "Clarity and economy. Every word must earn its place.",
    },
    {
        "title": "The Outage Banner",
        "description": "Write the in-app banner shown while payments are delayed by an outage.",
        "category": "incidents",
        "suggested_time_seconds": 180,
        "judging_criteria": "Calm, specific, and honest about what users should do now.",
    },
    {
        "title": "Push Notification Restraint",
        "description": "Write a push notification reminding someone to finish setting up their account, without nagging.",
        "category": "notifications",
        "suggested_time_seconds": 120,
        "judging_criteria": "Respect for attention, a clear benefit, under 90 characters.",
    },
    {
        "title": "Delete Forever?",
        "description": "Write the title, body, and buttons for permanently deleting a shared project.",
        "category": "dialogs",
        "suggested_time_seconds": 180,
        "judging_criteria": "Consequences are unmistakable; buttons are unambiguous.",
    },
    {
        "title": "Loading, Honestly",
        "description": "Write three rotating loading messages for a report that takes about a minute to build.",
        "category": "system status",
        "suggested_time_seconds": 150,
        "judging_criteria": "Sets expectations, avoids filler jokes that wear thin.",
    },
    {
        "title": "The Feature Nobody Asked For",
        "description": "Announce a redesigned settings page in a release note that users will actually read.",
        "category": "announcements",
        "suggested_time_seconds": 180,
        "judging_criteria": "Leads with user benefit, short, skimmable.",
    },
]


def pick_task_ids(task_ids: List[int], count: int) -> List[int]:
    """Return ``count`` distinct task ids in random order.

    Args:
        task_ids: All available task ids.
        count: Number of rounds needing a task.

    Returns:
        A random sample of ids, or an empty list if there are not enough tasks
        to cover every round.
    """
    if len(task_ids) < count:
        return []
    return random.sample(task_ids, count)
