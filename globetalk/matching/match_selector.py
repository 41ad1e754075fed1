"""
Match selector - uniform random choice among candidates.
"""

import random
from typing import Optional, Sequence

from globetalk.errors import InvalidArgument
from globetalk.models.user_profile import UserProfile


class MatchSelector:
    """
    Picks one candidate uniformly at random.

    Selection is not seeded; pass an rng (anything with randrange) to
    control it, e.g. random.Random(42) in tests.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def select_match(self, candidates: Sequence[UserProfile]) -> Optional[UserProfile]:
        """
        Choose one candidate.

        Args:
            candidates: Eligible profiles

        Returns:
            One element of candidates, or None if there are none

        Raises:
            InvalidArgument: If candidates is not a sequence
        """
        if candidates is None or not isinstance(candidates, Sequence):
            raise InvalidArgument("candidates must be a sequence")
        if not candidates:
            return None
        return candidates[self.rng.randrange(len(candidates))]


def select_match(candidates: Sequence[UserProfile]) -> Optional[UserProfile]:
    """
    Choose one candidate.

    Convenience function using default selector.
    """
    return MatchSelector().select_match(candidates)
