"""Search endpoint used by the webSearch client tool."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from omnivoice.api.auth import require_auth
from omnivoice.core.dependencies import get_search_service
from omnivoice.services.search.service import SearchService

router = APIRouter(dependencies=[Depends(require_auth)])
logger = logging.getLogger(__name__)


class SearchRequest(BaseModel):
    """Search request model."""
    query: Optional[str] = None


@router.post("/search")
async def search(
    body: SearchRequest,
    search_service: SearchService = Depends(get_search_service),
):
    """Run a web search and return ``{summary, results}``."""
    query = (body.query or "").strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query required")

    try:
        return await search_service.search(query)
    except Exception as e:
        logger.error(
            f"[SEARCH] Search failed - Query: '{query[:100]}', "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Search failed")
