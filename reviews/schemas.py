from typing import Optional

from pydantic import BaseModel, Field, StrictBool

from reviews.models import MIN_RATING, MAX_RATING


class ReviewIn(BaseModel):
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    content: str = Field(min_length=1)
    verified: StrictBool = False


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=MIN_RATING, le=MAX_RATING)
    content: Optional[str] = Field(default=None, min_length=1)
