"""Generates short uppercase join codes for games."""
import random
import string
from typing import Callable


# No 0/O or 1/I so codes read unambiguously off a shared display
_ALPHABET = "".join(c for c in string.ascii_uppercase + string.digits if c not in "0O1I")


def generate_game_code(length: int = 6) -> str:
    """Generate a random uppercase alphanumeric game code.

    Args:
        length: Number of characters in the code. Defaults to 6.

    Returns:
        A random uppercase alphanumeric string.
    """
    return "".join(random.choices(_ALPHABET, k=length))


def generate_unique_code(is_taken: Callable[[str], bool], attempts: int = 10) -> str:
    """Generate a code that ``is_taken`` reports as free.

    Args:
        is_taken: Predicate returning True when a code is already in use.
        attempts: How many candidates to try before widening the code.

    Returns:
        An unused code. After ``attempts`` collisions a longer code is
        returned, which makes a further collision vanishingly unlikely.
    """
    for _ in range(attempts):
        code = generate_game_code()
        if not is_taken(code):
            return code
    return generate_game_code(length=8)
