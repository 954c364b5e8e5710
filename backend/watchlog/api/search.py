import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from watchlog.errors import ProviderError
from watchlog.schemas.search import SearchResponse
from watchlog.services.providers import SearchProvider

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/search", tags=["search"])


def get_search_provider(request: Request) -> SearchProvider:
    return request.app.state.search_provider


@router.get("", response_model=SearchResponse)
async def search(q: str = Query(""), provider: SearchProvider = Depends(get_search_provider)):
    try:
        results = await provider.search(q)
    except ProviderError as e:
        logger.warning(f"Search for '{q}' failed: {e}")
        raise HTTPException(502, "Search failed")
    return SearchResponse(results=results)
