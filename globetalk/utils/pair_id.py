"""
Canonical pair ids for unordered pairs of users.

The pair id is the deduplication key of the penpal ledger: both
participants map to the same record whichever of them sends the request.
"""

from globetalk.errors import InvalidArgument
from globetalk.utils.constants import PAIR_ID_SEPARATOR


def make_pair_id(user_a: str, user_b: str) -> str:
    """
    Build the canonical id for an unordered pair of user ids.

    Args:
        user_a: First user id
        user_b: Second user id

    Returns:
        The two ids sorted lexicographically and joined by PAIR_ID_SEPARATOR

    Raises:
        InvalidArgument: If either id is empty or both ids are the same
    """
    if not user_a or not user_b:
        raise InvalidArgument("Both user ids are required")
    if user_a == user_b:
        raise InvalidArgument("A pair needs two different users")

    first, second = sorted((user_a, user_b))
    return f"{first}{PAIR_ID_SEPARATOR}{second}"
