from pydantic import BaseModel
from typing import Literal

from watchlog.schemas.movie import MovieResponse
from watchlog.schemas.user import UserResponse


class SnapshotDocument(BaseModel):
    users: list[UserResponse]
    movies: list[MovieResponse]


class ImportSummary(BaseModel):
    users: int = 0
    movies: int = 0
    skipped_users: int = 0
    skipped_movies: int = 0


class ImportResponse(ImportSummary):
    status: Literal["ok"] = "ok"
