"""GlobeTalk matchmaking and penpal requests."""

__version__ = "1.0.0"
