from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from watchlog.database import get_db
from watchlog.errors import NotFoundError, ValidationError
from watchlog.schemas.movie import (
    ManualMovieCreate,
    MovieCreate,
    MovieDeletedResponse,
    MovieExistsResponse,
    MovieResponse,
)
from watchlog.schemas.user import UserResponse
from watchlog.services.watchlist import AddResult, WatchlistStore

router = APIRouter(prefix="/api/users", tags=["users"])

_ADD_RESPONSES = {200: {"model": MovieExistsResponse, "description": "Already on the list"}}


def _added(result: AddResult):
    if result.already_exists:
        return JSONResponse(MovieExistsResponse().model_dump(), status_code=200)
    return result.created


@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await WatchlistStore(db).list_users()


@router.get("/{user_id}/movies", response_model=list[MovieResponse])
async def list_movies(
    user_id: int,
    sort: str = Query("added", description="added | title | year"),
    q: str | None = Query(None, description="Case-insensitive title filter"),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await WatchlistStore(db).list_entries(user_id, sort=sort, query=q)
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    except ValidationError as e:
        raise HTTPException(400, str(e))


@router.post("/{user_id}/movies", response_model=MovieResponse, status_code=201, responses=_ADD_RESPONSES)
async def add_movie(user_id: int, data: MovieCreate, db: AsyncSession = Depends(get_db)):
    try:
        result = await WatchlistStore(db).add_entry(user_id, data.model_dump())
    except ValidationError as e:
        raise HTTPException(400, str(e))
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    return _added(result)


@router.post("/{user_id}/movies/manual", response_model=MovieResponse, status_code=201)
async def add_manual_movie(user_id: int, data: ManualMovieCreate, db: AsyncSession = Depends(get_db)):
    """Add a title that is not in the search provider; the external id is generated."""
    try:
        result = await WatchlistStore(db).add_manual_entry(
            user_id, data.title, year=data.year, poster_url=data.poster_url
        )
    except ValidationError as e:
        raise HTTPException(400, str(e))
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    return _added(result)


@router.delete("/{user_id}/movies/{movie_id}", response_model=MovieDeletedResponse)
async def remove_movie(user_id: int, movie_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await WatchlistStore(db).remove_entry(user_id, movie_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    return MovieDeletedResponse()
