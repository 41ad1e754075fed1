"""Shared fixtures for GlobeTalk tests."""

import random

import pytest

from globetalk.penpals.request_ledger import PenpalRequestLedger
from globetalk.storage.memory import InMemoryPenpalStore, InMemoryUserDirectory

from tests.helpers import TickingClock, make_profile


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def scenario_profiles():
    """u1 asks for English/EU; only u2 qualifies."""
    return [
        make_profile("u1", languages=["English"], region="EU"),
        make_profile("u2", languages=["English"], region="EU",
                     hobbies=["chess"], bio="Hi there"),
        make_profile("u3", languages=["French"], region="EU"),
    ]


@pytest.fixture
def directory(scenario_profiles):
    """In-memory directory seeded with the scenario profiles."""
    return InMemoryUserDirectory(scenario_profiles)


@pytest.fixture
def penpal_store():
    return InMemoryPenpalStore()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def ledger(penpal_store, clock):
    """Ledger over an empty in-memory store with a strictly increasing clock."""
    return PenpalRequestLedger(penpal_store, clock=clock)


@pytest.fixture
def seeded_rng():
    return random.Random(1234)
