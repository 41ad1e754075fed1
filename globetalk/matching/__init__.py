"""Candidate filtering, random selection and match commits."""

from .candidate_filter import CandidateFilter, find_candidates
from .match_selector import MatchSelector, select_match
from .match_transaction import MutualStateTransaction
from .matchmaker import Matchmaker

__all__ = [
    'CandidateFilter',
    'find_candidates',
    'MatchSelector',
    'select_match',
    'MutualStateTransaction',
    'Matchmaker',
]
