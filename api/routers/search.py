# api/routers/search.py
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.deps import get_aggregator
from models import Listing
from search.aggregator import Aggregator, SearchError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])


@router.get("/search", response_model=list[Listing])
async def search_listings(request: Request, aggregator: Aggregator = Depends(get_aggregator)):
    """
    Search all sources. Query parameters (all optional): city, minPrice, maxPrice, rooms, maxRooms,
    bedrooms, bathrooms, minArea, maxArea, floor, sort, amenity flags (balcony=true, ...) and
    source flags (immowelt, kleinanzeigen, wgGesucht; none = all).
    """
    try:
        return await aggregator.search(dict(request.query_params))
    except SearchError as e:
        logger.error("Search API error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Search failed", "message": str(e)})
