"""
Candidate filter for matchmaking.

Finds every user a requester could be matched with: same language, same
region, not the requester, and not already matched in either direction.
"""

import logging
from typing import List

from globetalk.errors import InvalidArgument, NotFound
from globetalk.models.match import MatchCriteria
from globetalk.models.user_profile import UserProfile
from globetalk.storage.user_directory import UserDirectory


logger = logging.getLogger(__name__)


class CandidateFilter:
    """
    Read-only candidate search over a user directory.

    The directory query is exact (as stored); every result is then
    re-checked case-insensitively so profiles written with drifting case
    still behave consistently.

    Example usage:
        candidate_filter = CandidateFilter(directory)
        candidates = candidate_filter.find_candidates("u1", criteria)
    """

    def __init__(self, directory: UserDirectory) -> None:
        self.directory = directory

    def find_candidates(self, requester_id: str, criteria: MatchCriteria) -> List[UserProfile]:
        """
        List eligible partners for a requester.

        Args:
            requester_id: Id of the user asking for a match
            criteria: Required language and region

        Returns:
            All eligible profiles in directory order (possibly empty)

        Raises:
            InvalidArgument: If requester_id or criteria are missing
            NotFound: If the requester has no profile
            BackendUnavailable: If the directory cannot be read
        """
        if not requester_id or not isinstance(requester_id, str):
            raise InvalidArgument("Invalid userId: must be a non-empty string")
        if not isinstance(criteria, MatchCriteria):
            raise InvalidArgument("Language and region are required")

        requester = self.directory.get_profile(requester_id)
        if requester is None:
            raise NotFound(f"User not found: {requester_id}")

        results = self.directory.find_by_language_and_region(
            criteria.language, criteria.region
        )

        candidates = [
            profile for profile in results
            if self._is_eligible(requester, profile, criteria)
        ]

        logger.debug(
            "%d of %d profiles eligible for %s (language=%s, region=%s, interest=%s)",
            len(candidates), len(results), requester_id,
            criteria.language, criteria.region, criteria.interest,
        )
        return candidates

    def _is_eligible(
        self,
        requester: UserProfile,
        candidate: UserProfile,
        criteria: MatchCriteria,
    ) -> bool:
        """
        Check one directory result against the requester.

        Rejects:
        - the requester itself
        - anyone already matched with the requester (either side's history)
        - results whose language or region no longer match once normalized
        """
        if candidate.user_id == requester.user_id:
            return False

        if requester.has_matched(candidate.user_id) or candidate.has_matched(requester.user_id):
            return False

        return candidate.speaks(criteria.language) and candidate.in_region(criteria.region)


def find_candidates(
    directory: UserDirectory,
    requester_id: str,
    criteria: MatchCriteria,
) -> List[UserProfile]:
    """
    Find candidates for a requester.

    Convenience function using a fresh filter over the given directory.
    """
    return CandidateFilter(directory).find_candidates(requester_id, criteria)
