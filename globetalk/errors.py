"""
Error taxonomy for matchmaking and penpal requests.

Every error raised by the service layer derives from GlobeTalkError and
carries the HTTP status the API layer answers with.
"""


class GlobeTalkError(Exception):
    """Base class for all service errors."""

    http_status = 500


class InvalidArgument(GlobeTalkError, ValueError):
    """Malformed or missing input. Not retried."""

    http_status = 400


class NotFound(GlobeTalkError):
    """A referenced profile or penpal request does not exist."""

    http_status = 404


class PermissionDenied(GlobeTalkError):
    """The caller may not act on this penpal request."""

    http_status = 403


class Conflict(GlobeTalkError):
    """
    A benign state collision.

    Why: races and duplicate requests are "try again" outcomes for the user,
    not system failures.
    """

    http_status = 409


class MatchConflict(Conflict):
    """Two users were linked concurrently (or already linked)."""


class RequestAlreadyPending(Conflict):
    """A pending request already exists for this pair, in either direction."""


class InvalidTransition(Conflict):
    """A penpal request is not pending and cannot be accepted or declined."""


class AlreadyPenpals(GlobeTalkError):
    """The pair already has an accepted penpal relationship."""

    http_status = 409


class BackendUnavailable(GlobeTalkError):
    """Storage I/O failed. Callers may retry the whole operation."""

    http_status = 503
