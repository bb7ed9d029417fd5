from pydantic import BaseModel, Field


class ReadingListAdd(BaseModel):
    book_id: int
    progress: int = Field(default=0, ge=0, le=100)


class ReadingProgressUpdate(BaseModel):
    progress: int = Field(ge=0, le=100)


class LikedBookAdd(BaseModel):
    book_id: int
