from pydantic import BaseModel


class SearchResult(BaseModel):
    """Provider-agnostic search hit."""

    external_id: str
    title: str
    year: int | None = None
    poster_url: str | None = None
    category: str | None = None


class SearchResponse(BaseModel):
    results: list[SearchResult]
