"""
PenpalRequest model - One record per unordered pair of users.

The record id is the canonical pair id, so a pair can never hold two
requests at once. Records move pending -> accepted | declined and are never
deleted; a declined pair may be re-requested, which overwrites the record.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from globetalk.utils.constants import (
    STATUS_ACCEPTED,
    STATUS_DECLINED,
    STATUS_PENDING,
)


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class RequestStatus(str, Enum):
    """Lifecycle state of a penpal request."""
    PENDING = STATUS_PENDING
    ACCEPTED = STATUS_ACCEPTED
    DECLINED = STATUS_DECLINED


class Participant(BaseModel):
    """Id and display name of one side of a request."""
    uid: str = Field(min_length=1)
    username: str = Field(min_length=1)


class PenpalRequest(BaseModel):
    """
    A penpal request between two users.

    Attributes:
        id: Canonical pair id (sorted user ids joined by "_")
        users: Both participants, requester first
        user_ids: Both participant ids, for membership queries
        requested_by: Id of the user who sent the request
        requested_to: Id of the user who received it
        status: pending, accepted or declined
        created_at: When the request was sent
        updated_at: When the status last changed
        accepted_by: Who accepted it (accepted requests only)
        declined_by: Who declined it (declined requests only)
    """
    id: str = Field(min_length=1)
    users: List[Participant]
    user_ids: List[str]
    requested_by: str
    requested_to: str
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    accepted_by: Optional[str] = None
    declined_by: Optional[str] = None

    model_config = {"frozen": False}

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def is_accepted(self) -> bool:
        return self.status == RequestStatus.ACCEPTED

    def involves(self, user_id: str) -> bool:
        """Check whether user_id is one of the two participants."""
        return user_id in self.user_ids

    def sort_key(self):
        """Listing order key: newest first, ties broken by id."""
        return (self.created_at, self.id)

    def to_api_dict(self) -> dict:
        """Serialize with the camelCase field names the web client reads."""
        return {
            "id": self.id,
            "users": [p.model_dump() for p in self.users],
            "userIds": list(self.user_ids),
            "requestedBy": self.requested_by,
            "requestedTo": self.requested_to,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "acceptedBy": self.accepted_by,
            "declinedBy": self.declined_by,
        }


class PenpalPage(BaseModel):
    """One page of a penpal listing."""
    items: List[PenpalRequest] = Field(default_factory=list)
    next_page_token: Optional[str] = None
