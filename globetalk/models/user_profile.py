"""
UserProfile model - Matchmaking-relevant attributes of a user.

Uses Pydantic v2 for validation. Profiles are owned by the user directory;
this service only ever changes matched_with.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator

from globetalk.utils.constants import DEFAULT_USERNAME


def normalize_key(value: str) -> str:
    """Case-insensitive comparison key for languages and regions."""
    return (value or "").strip().casefold()


class UserProfile(BaseModel):
    """
    A user's matchmaking profile.

    Attributes:
        user_id: Opaque identity of the user
        username: Public display name
        languages: Spoken languages, compared case-insensitively
        region: Home region, compared case-insensitively
        hobbies: Hobbies in the order the user listed them
        bio: Free-form description
        matched_with: Ids of users this user has been matched with
                      (set semantics, first-seen order kept)
    """
    user_id: str = Field(min_length=1)
    username: str = DEFAULT_USERNAME
    languages: List[str] = Field(default_factory=list)
    region: str = ""
    hobbies: List[str] = Field(default_factory=list)
    bio: str = ""
    matched_with: List[str] = Field(default_factory=list)

    model_config = {"frozen": False}

    @field_validator("username", mode="before")
    @classmethod
    def default_username(cls, value):
        return value or DEFAULT_USERNAME

    @field_validator("languages", "hobbies", "matched_with", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return [] if value is None else value

    @field_validator("region", "bio", mode="before")
    @classmethod
    def none_to_blank(cls, value):
        return "" if value is None else value

    @field_validator("matched_with")
    @classmethod
    def dedupe_matches(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    def has_matched(self, other_id: str) -> bool:
        """Check whether other_id is already in this user's match history."""
        return other_id in self.matched_with

    def speaks(self, language: str) -> bool:
        """Check language membership ignoring case."""
        key = normalize_key(language)
        return any(normalize_key(lang) == key for lang in self.languages)

    def in_region(self, region: str) -> bool:
        """Check region equality ignoring case."""
        return normalize_key(self.region) == normalize_key(region)
