"""
Penpal request ledger.

Sends, accepts and declines penpal requests and lists them page by page.
Each unordered pair of users has a single record keyed by its canonical
pair id, so checking for an existing request is a primary-key read.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from globetalk.errors import (
    AlreadyPenpals,
    InvalidArgument,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    RequestAlreadyPending,
)
from globetalk.models.penpal_request import (
    Participant,
    PenpalPage,
    PenpalRequest,
    RequestStatus,
    utcnow,
)
from globetalk.storage.penpal_store import PenpalStore
from globetalk.utils.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from globetalk.utils.pair_id import make_pair_id


logger = logging.getLogger(__name__)


class PenpalRequestLedger:
    """
    Lifecycle of penpal requests: pending -> accepted | declined.

    Invariants:
    - at most one pending request per pair, whoever sent it
    - an accepted pair never gets another request
    - only the recipient may accept or decline

    Example usage:
        ledger = PenpalRequestLedger(store)
        request = ledger.send_request("alice", "Alice", "bob", "Bob")
        ledger.accept_request(request.id, "bob")
    """

    def __init__(self, store: PenpalStore, clock: Optional[Callable[[], datetime]] = None) -> None:
        """
        Args:
            store: Penpal storage backend
            clock: Returns the current time; defaults to UTC now
        """
        self.store = store
        self.clock = clock or utcnow

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def send_request(self, from_id: str, from_name: str, to_id: str, to_name: str) -> PenpalRequest:
        """
        Send a penpal request.

        A declined request between the pair is replaced by the new one.

        Args:
            from_id: Sender id
            from_name: Sender display name
            to_id: Recipient id
            to_name: Recipient display name

        Returns:
            The stored pending request

        Raises:
            InvalidArgument: If a field is empty or from_id == to_id
            AlreadyPenpals: If the pair already accepted a request
            RequestAlreadyPending: If a request is pending in either direction
            BackendUnavailable: If storage fails
        """
        if not from_id or not from_name or not to_id or not to_name:
            raise InvalidArgument("All parameters are required")
        if from_id == to_id:
            raise InvalidArgument("Cannot send request to yourself")

        pair_id = make_pair_id(from_id, to_id)

        with self.store.transaction() as txn:
            existing = txn.get_request(pair_id)
            if existing is not None:
                if existing.is_accepted:
                    raise AlreadyPenpals("You are already penpals")
                if existing.is_pending:
                    raise RequestAlreadyPending(
                        "A request is already pending between these users"
                    )

            now = self.clock()
            request = PenpalRequest(
                id=pair_id,
                users=[
                    Participant(uid=from_id, username=from_name),
                    Participant(uid=to_id, username=to_name),
                ],
                user_ids=[from_id, to_id],
                requested_by=from_id,
                requested_to=to_id,
                status=RequestStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            txn.save_request(request)

        logger.info("Penpal request %s sent by %s", pair_id, from_id)
        return request

    def accept_request(self, pair_id: str, user_id: str) -> PenpalRequest:
        """
        Accept a pending request. Only its recipient may do so.

        Raises:
            InvalidArgument: If pair_id or user_id is empty
            NotFound: If there is no request with this id
            PermissionDenied: If user_id is not the recipient
            InvalidTransition: If the request is no longer pending
        """
        return self._resolve(pair_id, user_id, RequestStatus.ACCEPTED)

    def decline_request(self, pair_id: str, user_id: str) -> PenpalRequest:
        """
        Decline a pending request. Only its recipient may do so.

        Raises the same errors as accept_request.
        """
        return self._resolve(pair_id, user_id, RequestStatus.DECLINED)

    def _resolve(self, pair_id: str, user_id: str, outcome: RequestStatus) -> PenpalRequest:
        """Move a pending request to its terminal state."""
        if not pair_id:
            raise InvalidArgument("Missing penpal document ID")
        if not user_id:
            raise InvalidArgument("userId required")

        with self.store.transaction() as txn:
            request = txn.get_request(pair_id)
            if request is None:
                raise NotFound(f"Penpal request not found: {pair_id}")
            if request.requested_to != user_id:
                raise PermissionDenied("Only the recipient can respond to this request")
            if not request.is_pending:
                raise InvalidTransition(
                    f"Request {pair_id} is already {request.status.value}"
                )

            request.status = outcome
            request.updated_at = self.clock()
            if outcome == RequestStatus.ACCEPTED:
                request.accepted_by = user_id
            else:
                request.declined_by = user_id
            txn.save_request(request)

        logger.info("Penpal request %s %s by %s", pair_id, outcome.value, user_id)
        return request

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_request(self, pair_id: str, user_id: Optional[str] = None) -> PenpalRequest:
        """
        Read one request.

        Args:
            pair_id: Canonical pair id of the request
            user_id: When given, the caller must be one of the two participants

        Raises:
            NotFound: If there is no request with this id
            PermissionDenied: If user_id is not a participant
        """
        request = self.store.get_request(pair_id)
        if request is None:
            raise NotFound(f"Penpal request not found: {pair_id}")
        if user_id is not None and not request.involves(user_id):
            raise PermissionDenied("Not a participant in this request")
        return request

    def list_accepted(
        self,
        user_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_token: Optional[str] = None,
    ) -> PenpalPage:
        """List the user's penpals (accepted requests on either side), newest first."""
        return self._page(user_id, page_size, page_token,
                          status=RequestStatus.ACCEPTED, participant=user_id)

    def list_pending_incoming(
        self,
        user_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_token: Optional[str] = None,
    ) -> PenpalPage:
        """List pending requests sent to the user, newest first."""
        return self._page(user_id, page_size, page_token,
                          status=RequestStatus.PENDING, requested_to=user_id)

    def list_pending_outgoing(
        self,
        user_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_token: Optional[str] = None,
    ) -> PenpalPage:
        """List pending requests sent by the user, newest first."""
        return self._page(user_id, page_size, page_token,
                          status=RequestStatus.PENDING, requested_by=user_id)

    def _page(self, user_id: str, page_size: int, page_token: Optional[str], **filters) -> PenpalPage:
        """
        Fetch one page.

        next_page_token is the id of the last item when the page is full,
        None once a short page shows the listing is exhausted.
        """
        if not user_id:
            raise InvalidArgument("userId required")
        if not isinstance(page_size, int) or not 1 <= page_size <= MAX_PAGE_SIZE:
            raise InvalidArgument(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")

        items = self.store.query_requests(
            limit=page_size,
            start_after=page_token or None,
            **filters,
        )
        next_token = items[-1].id if len(items) == page_size else None
        return PenpalPage(items=items, next_page_token=next_token)
