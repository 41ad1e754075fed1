"""Data models for GlobeTalk matchmaking."""

from .user_profile import UserProfile
from .match import MatchCriteria, MatchResult
from .penpal_request import Participant, PenpalPage, PenpalRequest, RequestStatus

__all__ = [
    'UserProfile',
    'MatchCriteria',
    'MatchResult',
    'Participant',
    'PenpalPage',
    'PenpalRequest',
    'RequestStatus',
]
