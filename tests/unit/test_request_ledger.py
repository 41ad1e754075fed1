"""
Unit tests for the penpal request ledger.

Tests cover:
- Sending requests and canonical pair ids
- Accept / decline transitions and who may perform them
- Paginated listings
"""

import pytest

from globetalk.errors import (
    AlreadyPenpals,
    Conflict,
    InvalidArgument,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    RequestAlreadyPending,
)
from globetalk.models.penpal_request import RequestStatus


def befriend(ledger, user_id, partner_id):
    """Send a request from user_id and have partner_id accept it."""
    request = ledger.send_request(user_id, user_id.title(), partner_id, partner_id.title())
    return ledger.accept_request(request.id, partner_id)


# =============================================================================
# send_request Tests
# =============================================================================

class TestSendRequest:
    """Tests for sending penpal requests."""

    def test_creates_pending_record(self, ledger, penpal_store):
        request = ledger.send_request("bob", "Bob", "alice", "Alice")

        assert request.id == "alice_bob"
        assert request.status == RequestStatus.PENDING
        assert request.requested_by == "bob"
        assert request.requested_to == "alice"
        assert [p.uid for p in request.users] == ["bob", "alice"]
        assert request.users[1].username == "Alice"
        assert request.user_ids == ["bob", "alice"]
        assert request.created_at == request.updated_at
        assert penpal_store.get_request("alice_bob") == request

    def test_reverse_request_is_already_pending(self, ledger):
        """The canonical id collides whichever side sends."""
        ledger.send_request("a", "A", "b", "B")

        with pytest.raises(RequestAlreadyPending):
            ledger.send_request("b", "B", "a", "A")

    def test_repeat_request_is_already_pending(self, ledger):
        ledger.send_request("a", "A", "b", "B")
        with pytest.raises(RequestAlreadyPending):
            ledger.send_request("a", "A", "b", "B")

    def test_already_pending_is_a_conflict(self, ledger):
        ledger.send_request("a", "A", "b", "B")
        with pytest.raises(Conflict):
            ledger.send_request("b", "B", "a", "A")

    def test_accepted_pair_cannot_request_again(self, ledger):
        request = ledger.send_request("a", "A", "b", "B")
        ledger.accept_request(request.id, "b")

        with pytest.raises(AlreadyPenpals):
            ledger.send_request("a", "A", "b", "B")
        with pytest.raises(AlreadyPenpals):
            ledger.send_request("b", "B", "a", "A")

    def test_declined_pair_can_request_again(self, ledger):
        first = ledger.send_request("a", "A", "b", "B")
        ledger.decline_request(first.id, "b")

        second = ledger.send_request("b", "B", "a", "A")

        assert second.id == first.id
        assert second.status == RequestStatus.PENDING
        assert second.requested_by == "b"
        assert second.declined_by is None
        assert second.created_at > first.created_at

    @pytest.mark.parametrize("args", [
        ("", "A", "b", "B"),
        ("a", "", "b", "B"),
        ("a", "A", "", "B"),
        ("a", "A", "b", ""),
        (None, "A", "b", "B"),
    ])
    def test_rejects_missing_fields(self, ledger, args):
        with pytest.raises(InvalidArgument, match="All parameters are required"):
            ledger.send_request(*args)

    def test_rejects_self_request(self, ledger):
        with pytest.raises(InvalidArgument, match="yourself"):
            ledger.send_request("a", "A", "a", "A")


# =============================================================================
# accept / decline Tests
# =============================================================================

class TestRespond:
    """Tests for accepting and declining requests."""

    @pytest.fixture
    def pending(self, ledger):
        return ledger.send_request("a", "A", "b", "B")

    def test_accept(self, ledger, pending):
        accepted = ledger.accept_request(pending.id, "b")

        assert accepted.status == RequestStatus.ACCEPTED
        assert accepted.accepted_by == "b"
        assert accepted.updated_at > pending.updated_at
        assert accepted.created_at == pending.created_at
        assert ledger.get_request(pending.id).status == RequestStatus.ACCEPTED

    def test_decline(self, ledger, pending):
        declined = ledger.decline_request(pending.id, "b")

        assert declined.status == RequestStatus.DECLINED
        assert declined.declined_by == "b"
        assert declined.accepted_by is None
        assert ledger.get_request(pending.id).status == RequestStatus.DECLINED

    def test_sender_cannot_accept_own_request(self, ledger, pending):
        with pytest.raises(PermissionDenied):
            ledger.accept_request(pending.id, "a")
        assert ledger.get_request(pending.id).is_pending

    def test_stranger_cannot_decline(self, ledger, pending):
        with pytest.raises(PermissionDenied):
            ledger.decline_request(pending.id, "mallory")

    def test_accept_after_decline_is_invalid(self, ledger, pending):
        ledger.decline_request(pending.id, "b")
        with pytest.raises(InvalidTransition):
            ledger.accept_request(pending.id, "b")
        assert ledger.get_request(pending.id).status == RequestStatus.DECLINED

    def test_accept_twice_is_invalid(self, ledger, pending):
        ledger.accept_request(pending.id, "b")
        with pytest.raises(InvalidTransition):
            ledger.accept_request(pending.id, "b")

    def test_unknown_request(self, ledger):
        with pytest.raises(NotFound):
            ledger.accept_request("nobody_nowhere", "nowhere")

    def test_missing_ids(self, ledger, pending):
        with pytest.raises(InvalidArgument):
            ledger.accept_request("", "b")
        with pytest.raises(InvalidArgument):
            ledger.decline_request(pending.id, "")

    def test_get_unknown_request(self, ledger):
        with pytest.raises(NotFound):
            ledger.get_request("x_y")

    def test_get_request_for_participant(self, ledger, pending):
        assert ledger.get_request(pending.id, "a").id == pending.id
        assert ledger.get_request(pending.id, "b").id == pending.id

    def test_get_request_rejects_outsider(self, ledger, pending):
        with pytest.raises(PermissionDenied):
            ledger.get_request(pending.id, "mallory")


# =============================================================================
# Listing Tests
# =============================================================================

class TestListings:
    """Tests for paginated listings."""

    @pytest.fixture
    def hub_with_five_penpals(self, ledger):
        for i in range(1, 6):
            befriend(ledger, "hub", f"p{i}")
        return ledger

    def test_pagination_over_five(self, hub_with_five_penpals):
        """pageSize=2 over 5 records pages as 2 + 2 + 1."""
        ledger = hub_with_five_penpals

        first = ledger.list_accepted("hub", page_size=2)
        assert [r.id for r in first.items] == ["hub_p5", "hub_p4"]
        assert first.next_page_token == "hub_p4"

        second = ledger.list_accepted("hub", page_size=2, page_token=first.next_page_token)
        assert [r.id for r in second.items] == ["hub_p3", "hub_p2"]
        assert second.next_page_token == "hub_p2"

        third = ledger.list_accepted("hub", page_size=2, page_token=second.next_page_token)
        assert [r.id for r in third.items] == ["hub_p1"]
        assert third.next_page_token is None

    def test_full_last_page_yields_empty_follow_up(self, hub_with_five_penpals):
        page = hub_with_five_penpals.list_accepted("hub", page_size=5)
        assert len(page.items) == 5
        assert page.next_page_token == "hub_p1"

        rest = hub_with_five_penpals.list_accepted("hub", page_size=5, page_token=page.next_page_token)
        assert rest.items == []
        assert rest.next_page_token is None

    def test_accepted_visible_to_both_sides(self, hub_with_five_penpals):
        page = hub_with_five_penpals.list_accepted("p3")
        assert [r.id for r in page.items] == ["hub_p3"]

    def test_unknown_token_starts_over(self, hub_with_five_penpals):
        page = hub_with_five_penpals.list_accepted("hub", page_size=2, page_token="no_such")
        assert [r.id for r in page.items] == ["hub_p5", "hub_p4"]

    def test_pending_incoming_and_outgoing(self, ledger):
        ledger.send_request("a", "A", "me", "Me")
        ledger.send_request("me", "Me", "b", "B")
        ledger.send_request("c", "C", "me", "Me")
        befriend(ledger, "me", "d")

        incoming = ledger.list_pending_incoming("me")
        outgoing = ledger.list_pending_outgoing("me")

        assert [r.requested_by for r in incoming.items] == ["c", "a"]
        assert incoming.next_page_token is None
        assert [r.requested_to for r in outgoing.items] == ["b"]

    def test_pending_incoming_pages_with_token(self, ledger):
        ledger.send_request("a", "A", "me", "Me")
        ledger.send_request("c", "C", "me", "Me")

        first = ledger.list_pending_incoming("me", page_size=1)
        assert [r.id for r in first.items] == ["c_me"]
        assert first.next_page_token == "c_me"

        second = ledger.list_pending_incoming("me", page_size=1, page_token=first.next_page_token)
        assert [r.id for r in second.items] == ["a_me"]
        assert second.next_page_token == "a_me"

        last = ledger.list_pending_incoming("me", page_size=1, page_token=second.next_page_token)
        assert last.items == []
        assert last.next_page_token is None

    def test_pending_outgoing_pages_with_token(self, ledger):
        ledger.send_request("me", "Me", "b", "B")
        ledger.send_request("me", "Me", "x", "X")
        ledger.send_request("y", "Y", "me", "Me")

        first = ledger.list_pending_outgoing("me", page_size=1)
        assert [r.id for r in first.items] == ["me_x"]
        assert first.next_page_token == "me_x"

        second = ledger.list_pending_outgoing("me", page_size=1, page_token=first.next_page_token)
        assert [r.id for r in second.items] == ["b_me"]

        last = ledger.list_pending_outgoing("me", page_size=1, page_token=second.next_page_token)
        assert last.items == []
        assert last.next_page_token is None

    def test_pending_excludes_resolved(self, ledger):
        request = ledger.send_request("a", "A", "me", "Me")
        ledger.decline_request(request.id, "me")

        assert ledger.list_pending_incoming("me").items == []
        assert ledger.list_pending_outgoing("a").items == []
        assert ledger.list_accepted("me").items == []

    def test_empty_listing(self, ledger):
        page = ledger.list_accepted("lonely")
        assert page.items == []
        assert page.next_page_token is None

    @pytest.mark.parametrize("page_size", [0, -1, 101])
    def test_rejects_bad_page_size(self, ledger, page_size):
        with pytest.raises(InvalidArgument):
            ledger.list_accepted("me", page_size=page_size)

    def test_rejects_missing_user(self, ledger):
        with pytest.raises(InvalidArgument):
            ledger.list_pending_outgoing("")
