"""
Mutual-state transaction - links two matched users atomically.

Both users' matched_with sets change together or not at all. The pair is
re-read inside the transaction; if either side already lists the other,
another request got there first and nothing is written.
"""

import logging

from globetalk.errors import (
    BackendUnavailable,
    GlobeTalkError,
    InvalidArgument,
    MatchConflict,
    NotFound,
)
from globetalk.storage.user_directory import UserDirectory


logger = logging.getLogger(__name__)


class MutualStateTransaction:
    """
    Commits a match between two users.

    Example usage:
        MutualStateTransaction(directory).commit_match("u1", "u2")
    """

    def __init__(self, directory: UserDirectory) -> None:
        self.directory = directory

    def commit_match(self, requester_id: str, matched_id: str) -> None:
        """
        Record requester_id and matched_id as matched with each other.

        Args:
            requester_id: User who asked for the match
            matched_id: Selected partner

        Raises:
            InvalidArgument: If an id is empty or both ids are the same
            NotFound: If either profile no longer exists
            MatchConflict: If the pair is already linked on either side
            BackendUnavailable: If the transaction fails for any other reason
        """
        if not requester_id or not matched_id:
            raise InvalidArgument("Both user ids are required")
        if requester_id == matched_id:
            raise InvalidArgument("Cannot match a user with themselves")

        try:
            with self.directory.transaction() as txn:
                profiles = txn.get_profiles(requester_id, matched_id)

                missing = [uid for uid in (requester_id, matched_id) if uid not in profiles]
                if missing:
                    raise NotFound(f"User not found: {', '.join(missing)}")

                requester = profiles[requester_id]
                partner = profiles[matched_id]
                if requester.has_matched(matched_id) or partner.has_matched(requester_id):
                    raise MatchConflict(
                        f"Users already matched: {requester_id}, {matched_id}"
                    )

                txn.add_match(requester_id, matched_id)
                txn.add_match(matched_id, requester_id)
        except GlobeTalkError:
            raise
        except Exception as e:
            raise BackendUnavailable(f"Match transaction failed: {e}") from e

        logger.info("Matched %s with %s", requester_id, matched_id)
