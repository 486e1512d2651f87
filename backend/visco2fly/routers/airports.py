"""Airport search router: autocomplete backed by the flight providers."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from visco2fly.dependencies import get_orchestrator
from visco2fly.services.errors import AllProvidersFailed
from visco2fly.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/airport-search")
async def search_airports(
    keyword: str = Query(""),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Search airports by keyword; fewer than 2 characters returns nothing."""
    try:
        airports = await orchestrator.search_airports(keyword)
    except AllProvidersFailed as e:
        return JSONResponse(status_code=500, content={"error": e.message, "data": []})
    return {"data": airports}
