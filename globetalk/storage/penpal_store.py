"""
PenpalStore - Storage interface for penpal requests.
"""

from abc import ABC, abstractmethod
from typing import ContextManager, List, Optional

from globetalk.models.penpal_request import PenpalRequest, RequestStatus


class PenpalTransaction(ABC):
    """Handle for a read-check-write on one penpal record."""

    @abstractmethod
    def get_request(self, pair_id: str) -> Optional[PenpalRequest]:
        """Read and lock the record for pair_id (locks the id even if absent)."""

    @abstractmethod
    def save_request(self, request: PenpalRequest) -> None:
        """Create or overwrite the record with id request.id."""


class PenpalStore(ABC):
    """
    Abstract penpal ledger store.

    Listings are ordered by created_at descending, ties broken by id
    descending, so a record id is a stable cursor.
    """

    @abstractmethod
    def get_request(self, pair_id: str) -> Optional[PenpalRequest]:
        """Return the record for pair_id, or None."""

    @abstractmethod
    def query_requests(
        self,
        *,
        status: RequestStatus,
        limit: int,
        participant: Optional[str] = None,
        requested_to: Optional[str] = None,
        requested_by: Optional[str] = None,
        start_after: Optional[str] = None,
    ) -> List[PenpalRequest]:
        """
        List records matching every given filter.

        Args:
            status: Required status
            limit: Maximum number of records to return
            participant: Only records where this id is one of user_ids
            requested_to: Only records received by this id
            requested_by: Only records sent by this id
            start_after: Id of a record; listing resumes strictly after it.
                         An id that does not exist is ignored.

        Returns:
            Up to limit records in listing order
        """

    @abstractmethod
    def transaction(self) -> ContextManager[PenpalTransaction]:
        """Open a transaction; writes apply only if the block exits cleanly."""
