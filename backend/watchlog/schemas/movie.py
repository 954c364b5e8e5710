from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator
from typing import Literal

from watchlog.database import INTEGER_MAX, INTEGER_MIN


class MovieCreate(BaseModel):
    # external_id / title are checked by the store so a missing value is a 400, not a 422
    external_id: str | int | None = None
    title: str | None = None
    poster_url: str | None = None
    year: int | None = Field(None, ge=INTEGER_MIN, le=INTEGER_MAX)
    category: str | None = None


class ManualMovieCreate(BaseModel):
    title: str | None = None
    year: int | None = Field(None, ge=INTEGER_MIN, le=INTEGER_MAX)
    poster_url: str | None = None


class MovieResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    user_id: int
    external_id: str
    title: str
    poster_url: str | None
    year: int | None
    category: str | None
    added_at: datetime

    @field_validator("added_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes; everything is stored in UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class MovieExistsResponse(BaseModel):
    status: Literal["exists"] = "exists"


class MovieDeletedResponse(BaseModel):
    status: Literal["deleted"] = "deleted"
