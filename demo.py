#!/usr/bin/env python3
"""
GlobeTalk Matchmaking Demo

Demonstrates the complete flow against in-memory storage:
1. Seed a few profiles
2. Find a random match
3. Send a penpal request
4. Accept it and list penpals

Usage:
    python demo.py [language] [region]
    python demo.py  # English / EU
"""

import json
import sys

from globetalk.errors import GlobeTalkError
from globetalk.matching.matchmaker import Matchmaker
from globetalk.models.match import MatchCriteria
from globetalk.models.user_profile import UserProfile
from globetalk.penpals.request_ledger import PenpalRequestLedger
from globetalk.storage.memory import InMemoryPenpalStore, InMemoryUserDirectory


SAMPLE_PROFILES = [
    UserProfile(user_id="u1", username="Ana", languages=["English", "Spanish"],
                region="EU", hobbies=["hiking"], bio="Hola!"),
    UserProfile(user_id="u2", username="Ben", languages=["English"],
                region="EU", hobbies=["chess", "jazz"], bio="Chess nerd"),
    UserProfile(user_id="u3", username="Chloe", languages=["French"],
                region="EU", hobbies=["cooking"]),
    UserProfile(user_id="u4", username="Dev", languages=["English"],
                region="Asia", hobbies=["cricket"]),
]


def main(language: str = "English", region: str = "EU"):
    """Run the demo flow."""
    print("=" * 50)
    print("GlobeTalk Matchmaking Demo")
    print("=" * 50)

    directory = InMemoryUserDirectory(SAMPLE_PROFILES)
    matchmaker = Matchmaker(directory)
    ledger = PenpalRequestLedger(InMemoryPenpalStore())

    # =========================================================================
    # Step 1: Match
    # =========================================================================
    print()
    print(f"[1] Matching u1 on {language} / {region}...")

    try:
        criteria = MatchCriteria.build(language, region)
        match = matchmaker.get_random_match("u1", criteria)
    except GlobeTalkError as e:
        print(f"Error: {e}")
        return 1

    if match is None:
        print("    -> No match found, try other preferences")
        return 0
    print(f"    -> Matched with {match.name} ({match.id})")
    print(f"    -> u1 matched_with: {directory.get_profile('u1').matched_with}")

    # =========================================================================
    # Step 2: Penpal request
    # =========================================================================
    print()
    print("[2] Sending penpal request...")

    request = ledger.send_request("u1", "Ana", match.id, match.name)
    print(f"    -> Request {request.id} is {request.status.value}")

    # =========================================================================
    # Step 3: Accept and list
    # =========================================================================
    print()
    print("[3] Accepting request...")

    ledger.accept_request(request.id, match.id)
    page = ledger.list_accepted("u1")
    print(f"    -> u1 has {len(page.items)} penpal(s)")

    print()
    print("Match Summary (JSON):")
    print("-" * 30)
    summary = {
        "match": match.model_dump(),
        "penpals": [r.to_api_dict() for r in page.items],
    }
    print(json.dumps(summary, indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:3]))
