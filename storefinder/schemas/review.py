from pydantic import BaseModel, Field, field_validator


class ReviewCreate(BaseModel):
    """Schema for the review form on a store page."""

    text: str = Field(..., min_length=1, max_length=5000, description="Your review must have text!")
    rating: int = Field(..., ge=1, le=5, description="Your review needs a rating from 1 to 5!")

    @field_validator("text")
    @classmethod
    def normalize_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Your review must have text!")
        return normalized
