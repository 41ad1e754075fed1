"""
UserDirectory - Storage interface for user profiles.

The directory is an external collaborator: profiles are created at
onboarding elsewhere. Matchmaking reads profiles, queries them by language
and region, and links matched users inside a transaction.
"""

from abc import ABC, abstractmethod
from typing import ContextManager, Dict, List, Optional

from globetalk.models.user_profile import UserProfile


class DirectoryTransaction(ABC):
    """
    Handle for reads and writes that commit or roll back together.

    Reads made through the handle lock the rows they return until the
    transaction ends.
    """

    @abstractmethod
    def get_profiles(self, *user_ids: str) -> Dict[str, UserProfile]:
        """
        Read and lock profiles by id.

        Returns:
            Mapping of id to profile; ids that do not exist are absent
        """

    @abstractmethod
    def add_match(self, user_id: str, partner_id: str) -> None:
        """Add partner_id to user_id's matched_with, unless already there."""


class UserDirectory(ABC):
    """
    Abstract user directory.

    Subclasses must implement:
        - get_profile(): Read one profile
        - find_by_language_and_region(): Exact-match candidate query
        - save_profile(): Insert or replace a profile
        - transaction(): Open a DirectoryTransaction

    All methods raise BackendUnavailable when storage I/O fails.
    """

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Return the profile for user_id, or None if it does not exist."""

    @abstractmethod
    def find_by_language_and_region(self, language: str, region: str) -> List[UserProfile]:
        """
        Return profiles whose languages contain language and whose region
        equals region. Both comparisons are exact, as stored.
        """

    @abstractmethod
    def save_profile(self, profile: UserProfile) -> str:
        """Insert or replace a profile and return its user_id."""

    @abstractmethod
    def transaction(self) -> ContextManager[DirectoryTransaction]:
        """
        Open a transaction.

        Writes made through the yielded handle are applied only if the
        with-block exits without raising.
        """
