from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


# Tags offered on the store form
TAG_CHOICES = [
    "Wifi",
    "Open Late",
    "Family Friendly",
    "Vegetarian",
    "Licensed",
]


# ============================================================
# Request Schemas (What the forms send)
# ============================================================

class StoreForm(BaseModel):
    """Schema for the add/edit store form (validated on create and update)."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Please enter a store name!",
    )
    description: Optional[str] = Field(
        None,
        max_length=5000,
        description="Optional store description",
    )
    tags: List[str] = Field(default_factory=list)
    address: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="You must supply an address!",
    )
    lng: float = Field(..., ge=-180, le=180, description="You must supply coordinates!")
    lat: float = Field(..., ge=-90, le=90, description="You must supply coordinates!")
    photo: Optional[str] = Field(
        None,
        description="Generated photo filename, set by the resize step",
    )

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        """Trim whitespace and ensure name is not empty."""
        normalized = " ".join(value.split())
        if not normalized:
            raise ValueError("Please enter a store name!")
        return normalized

    @field_validator("description")
    @classmethod
    def normalize_description(cls, value: Optional[str]) -> Optional[str]:
        """Trim description; treat empty strings as None."""
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None

    @field_validator("address")
    @classmethod
    def normalize_address(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("You must supply an address!")
        return normalized

    @field_validator("tags")
    @classmethod
    def unique_tags(cls, value: List[str]) -> List[str]:
        """Tags are a set: drop blanks and duplicates, keep first-seen order."""
        seen = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


# ============================================================
# Response Schemas (What server sends back)
# ============================================================

class Location(BaseModel):
    type: str = "Point"
    coordinates: List[float]
    address: Optional[str] = None


class StoreSearchResult(BaseModel):
    """A full-text search hit."""

    id: UUID
    slug: str
    name: str
    description: Optional[str] = None
    photo: Optional[str] = None
    score: float


class StoreMapPin(BaseModel):
    """The projection returned by the proximity query."""

    id: UUID
    slug: str
    name: str
    description: Optional[str] = None
    location: Location
    photo: Optional[str] = None
