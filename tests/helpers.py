"""Test helpers shared across test modules."""

from datetime import datetime, timedelta, timezone

from globetalk.models.user_profile import UserProfile


class TickingClock:
    """Clock that advances one second per call, so creation order is strict."""

    def __init__(self, start: datetime = datetime(2024, 10, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def make_profile(user_id: str, languages=("English",), region: str = "EU", **kwargs) -> UserProfile:
    """Build a profile with sensible defaults."""
    username = kwargs.pop("username", user_id.upper())
    return UserProfile(
        user_id=user_id,
        username=username,
        languages=list(languages),
        region=region,
        **kwargs,
    )
