"""
Performance benchmarks for GlobeTalk matchmaking.

Performance targets:
- Candidate filtering: <500ms over 5000 profiles
- Random match end-to-end: <500ms over 5000 profiles
- Paging through 1000 penpals: <1s
"""

import time

from globetalk.matching.candidate_filter import CandidateFilter
from globetalk.matching.matchmaker import Matchmaker
from globetalk.models.match import MatchCriteria
from globetalk.penpals.request_ledger import PenpalRequestLedger
from globetalk.storage.memory import InMemoryPenpalStore, InMemoryUserDirectory

from tests.helpers import TickingClock, make_profile


def generate_directory(count: int) -> InMemoryUserDirectory:
    """Generate a directory with a mix of languages and regions."""
    languages = ["English", "French", "Spanish", "Hindi", "Japanese"]
    regions = ["EU", "Asia", "Americas"]

    profiles = [make_profile("requester")]
    for i in range(count):
        profiles.append(make_profile(
            f"user{i}",
            languages=[languages[i % len(languages)], languages[(i + 2) % len(languages)]],
            region=regions[i % len(regions)],
        ))
    return InMemoryUserDirectory(profiles)


class TestMatchingPerformance:
    """Benchmarks for the match path."""

    def test_candidate_filter_5000(self):
        directory = generate_directory(5000)
        criteria = MatchCriteria.build("English", "EU")

        start = time.time()
        candidates = CandidateFilter(directory).find_candidates("requester", criteria)
        elapsed = time.time() - start

        assert candidates
        assert elapsed < 0.5, f"Candidate filter took {elapsed:.3f}s"

    def test_random_match_5000(self):
        directory = generate_directory(5000)
        criteria = MatchCriteria.build("English", "EU")

        start = time.time()
        result = Matchmaker(directory).get_random_match("requester", criteria)
        elapsed = time.time() - start

        assert result is not None
        assert elapsed < 0.5, f"Random match took {elapsed:.3f}s"


class TestLedgerPerformance:
    """Benchmarks for penpal listings."""

    def test_page_through_1000(self):
        ledger = PenpalRequestLedger(InMemoryPenpalStore(), clock=TickingClock())
        for i in range(1000):
            request = ledger.send_request("hub", "Hub", f"p{i:04d}", f"P{i}")
            ledger.accept_request(request.id, f"p{i:04d}")

        start = time.time()
        seen = 0
        token = None
        while True:
            page = ledger.list_accepted("hub", page_size=100, page_token=token)
            seen += len(page.items)
            token = page.next_page_token
            if token is None:
                break
        elapsed = time.time() - start

        assert seen == 1000
        assert elapsed < 1.0, f"Paging took {elapsed:.3f}s"
