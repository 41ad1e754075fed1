"""
In-memory storage backends.

Used when no DATABASE_URL is configured, by the demo, and by tests.
A single re-entrant lock per store serializes transactions; writes are
staged on the transaction handle and applied only when the with-block exits
cleanly. Every read returns a copy so callers never alias stored state.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from globetalk.errors import NotFound
from globetalk.models.penpal_request import PenpalRequest, RequestStatus
from globetalk.models.user_profile import UserProfile
from globetalk.storage.penpal_store import PenpalStore, PenpalTransaction
from globetalk.storage.user_directory import DirectoryTransaction, UserDirectory


# =============================================================================
# User directory
# =============================================================================

class _MemoryDirectoryTransaction(DirectoryTransaction):

    def __init__(self, profiles: Dict[str, UserProfile]) -> None:
        self._profiles = profiles
        self._staged: Dict[str, UserProfile] = {}

    def _current(self, user_id: str) -> Optional[UserProfile]:
        profile = self._staged.get(user_id) or self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile else None

    def get_profiles(self, *user_ids: str) -> Dict[str, UserProfile]:
        found = {}
        for user_id in user_ids:
            profile = self._current(user_id)
            if profile is not None:
                found[user_id] = profile
        return found

    def add_match(self, user_id: str, partner_id: str) -> None:
        profile = self._current(user_id)
        if profile is None:
            raise NotFound(f"User not found: {user_id}")
        if not profile.has_matched(partner_id):
            profile.matched_with.append(partner_id)
        self._staged[user_id] = profile

    def apply(self) -> None:
        self._profiles.update(self._staged)


class InMemoryUserDirectory(UserDirectory):
    """Dict-backed user directory."""

    def __init__(self, profiles: Optional[List[UserProfile]] = None) -> None:
        self._profiles: Dict[str, UserProfile] = {}
        self._lock = threading.RLock()
        for profile in profiles or []:
            self.save_profile(profile)

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return profile.model_copy(deep=True) if profile else None

    def find_by_language_and_region(self, language: str, region: str) -> List[UserProfile]:
        with self._lock:
            return [
                profile.model_copy(deep=True)
                for profile in self._profiles.values()
                if language in profile.languages and profile.region == region
            ]

    def save_profile(self, profile: UserProfile) -> str:
        with self._lock:
            self._profiles[profile.user_id] = profile.model_copy(deep=True)
        return profile.user_id

    @contextmanager
    def transaction(self) -> Iterator[DirectoryTransaction]:
        with self._lock:
            txn = _MemoryDirectoryTransaction(self._profiles)
            yield txn
            txn.apply()


# =============================================================================
# Penpal store
# =============================================================================

class _MemoryPenpalTransaction(PenpalTransaction):

    def __init__(self, requests: Dict[str, PenpalRequest]) -> None:
        self._requests = requests
        self._staged: Dict[str, PenpalRequest] = {}

    def get_request(self, pair_id: str) -> Optional[PenpalRequest]:
        request = self._staged.get(pair_id) or self._requests.get(pair_id)
        return request.model_copy(deep=True) if request else None

    def save_request(self, request: PenpalRequest) -> None:
        self._staged[request.id] = request.model_copy(deep=True)

    def apply(self) -> None:
        self._requests.update(self._staged)


class InMemoryPenpalStore(PenpalStore):
    """Dict-backed penpal store."""

    def __init__(self) -> None:
        self._requests: Dict[str, PenpalRequest] = {}
        self._lock = threading.RLock()

    def get_request(self, pair_id: str) -> Optional[PenpalRequest]:
        with self._lock:
            request = self._requests.get(pair_id)
            return request.model_copy(deep=True) if request else None

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
        with self._lock:
            matches = [
                r for r in self._requests.values()
                if r.status == status
                and (participant is None or r.involves(participant))
                and (requested_to is None or r.requested_to == requested_to)
                and (requested_by is None or r.requested_by == requested_by)
            ]
            matches.sort(key=PenpalRequest.sort_key, reverse=True)

            cursor = self._requests.get(start_after) if start_after else None
            if cursor is not None:
                # Strictly after the cursor in descending order
                matches = [r for r in matches if r.sort_key() < cursor.sort_key()]

            return [r.model_copy(deep=True) for r in matches[:limit]]

    @contextmanager
    def transaction(self) -> Iterator[PenpalTransaction]:
        with self._lock:
            txn = _MemoryPenpalTransaction(self._requests)
            yield txn
            txn.apply()
