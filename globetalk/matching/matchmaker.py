"""
Matchmaker - filter, select and commit in one call.

Every way of not producing a match (no candidates, lost race, failed
commit) returns None: the user sees "no match found, try again" in all
of them.
"""

import logging
import random
from typing import Optional

from globetalk.errors import BackendUnavailable, Conflict, NotFound
from globetalk.matching.candidate_filter import CandidateFilter
from globetalk.matching.match_selector import MatchSelector
from globetalk.matching.match_transaction import MutualStateTransaction
from globetalk.models.match import MatchCriteria, MatchResult
from globetalk.storage.user_directory import UserDirectory


logger = logging.getLogger(__name__)


class Matchmaker:
    """
    Random matchmaking over a user directory.

    Example usage:
        matchmaker = Matchmaker(directory)
        match = matchmaker.get_random_match("u1", MatchCriteria.build("English", "EU"))
    """

    def __init__(self, directory: UserDirectory, rng: Optional[random.Random] = None) -> None:
        self.candidate_filter = CandidateFilter(directory)
        self.selector = MatchSelector(rng)
        self.transaction = MutualStateTransaction(directory)

    def get_random_match(self, requester_id: str, criteria: MatchCriteria) -> Optional[MatchResult]:
        """
        Find, pick and record a match for a requester.

        Args:
            requester_id: Id of the user asking for a match
            criteria: Required language and region

        Returns:
            Public fields of the new partner, or None if no match was made

        Raises:
            InvalidArgument: If the input is malformed
            NotFound: If the requester has no profile
            BackendUnavailable: If the candidate query fails
        """
        candidates = self.candidate_filter.find_candidates(requester_id, criteria)
        chosen = self.selector.select_match(candidates)
        if chosen is None:
            return None

        try:
            self.transaction.commit_match(requester_id, chosen.user_id)
        except Conflict as e:
            logger.warning("Lost match race for %s: %s", requester_id, e)
            return None
        except NotFound as e:
            logger.warning("Match partner vanished for %s: %s", requester_id, e)
            return None
        except BackendUnavailable as e:
            logger.error("Match voided for %s: %s", requester_id, e)
            return None

        return MatchResult.from_profile(chosen)
