"""Compare-and-swap with bounded retry for contended single-row values."""
import logging
from typing import Callable, TypeVar

from ..errors import ConcurrencyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compare_and_swap(
    read: Callable[[], T],
    compute: Callable[[T], T],
    write: Callable[[T, T], bool],
    attempts: int = 3,
    label: str = "value",
) -> T:
    """Apply ``compute`` to a shared value without losing concurrent updates.

    Each attempt takes a fresh ``read()``, derives the new value, and calls
    ``write(expected, new)``, which must perform a conditional update that only
    succeeds if the stored value still equals ``expected`` and return whether
    it did.

    Args:
        read: Returns the current stored value. May raise if the row is gone.
        compute: Pure function from the current value to the desired value.
        write: Conditional write; returns True when exactly one row changed.
        attempts: Maximum number of read/write rounds.
        label: Name used in log messages.

    Returns:
        The value that was written.

    Raises:
        ConcurrencyError: If every attempt lost the race.
    """
    for attempt in range(1, attempts + 1):
        expected = read()
        new_value = compute(expected)
        if write(expected, new_value):
            return new_value
        logger.debug("CAS conflict on %s (attempt %d/%d, expected=%r)", label, attempt, attempts, expected)

    logger.warning("CAS on %s gave up after %d attempts", label, attempts)
    raise ConcurrencyError()
