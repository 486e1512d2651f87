"""Flight search router: one search at a time, cached, with emissions attached."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from visco2fly.dependencies import get_orchestrator
from visco2fly.schemas.search import SearchRequest
from visco2fly.services.errors import AdmissionRejected, AllProvidersFailed, SearchFailed
from visco2fly.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()

RETRY_AFTER_SECONDS = 2


@router.post("/date")
async def search_flights(
    req: SearchRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Search flights for a route and date; returns offers and typical emissions."""
    params = req.to_params()
    try:
        return await orchestrator.search(params)
    except AdmissionRejected as e:
        logger.info(f"Rejected search {params.origin}->{params.destination}: another search is running")
        return JSONResponse(
            status_code=409,
            content={"error": e.message, "code": "search_in_progress", "retryable": True},
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
        )
    except AllProvidersFailed as e:
        return JSONResponse(status_code=500, content={"error": e.message})
    except SearchFailed as e:
        return JSONResponse(status_code=500, content={"error": e.message})
