"""
Match models - Criteria in, public projection out.

MatchCriteria is built per request; MatchResult is the read-only view of the
matched user handed back to the caller. Neither is persisted.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from globetalk.errors import InvalidArgument
from globetalk.models.user_profile import UserProfile, normalize_key


class MatchCriteria(BaseModel):
    """
    Preferences for one matchmaking request.

    Attributes:
        language: Language the partner must speak (required)
        region: Region the partner must live in (required)
        interest: Optional hobby hint, carried but not used for filtering
    """
    language: str = Field(min_length=1)
    region: str = Field(min_length=1)
    interest: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("language", "region", mode="before")
    @classmethod
    def strip_required(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @property
    def language_key(self) -> str:
        return normalize_key(self.language)

    @property
    def region_key(self) -> str:
        return normalize_key(self.region)

    @classmethod
    def build(
        cls,
        language: Optional[str],
        region: Optional[str],
        interest: Optional[str] = None,
    ) -> "MatchCriteria":
        """
        Validate raw input into criteria.

        Raises:
            InvalidArgument: If language or region is missing or blank
        """
        try:
            return cls(language=language, region=region, interest=interest or None)
        except ValidationError as e:
            raise InvalidArgument("Language and region are required") from e


class MatchResult(BaseModel):
    """Public fields of a matched user."""
    id: str
    name: str
    languages: List[str] = Field(default_factory=list)
    region: str = ""
    hobbies: List[str] = Field(default_factory=list)
    bio: str = ""

    model_config = {"frozen": True}

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "MatchResult":
        """Project a profile onto its public fields."""
        return cls(
            id=profile.user_id,
            name=profile.username,
            languages=list(profile.languages),
            region=profile.region,
            hobbies=list(profile.hobbies),
            bio=profile.bio,
        )
