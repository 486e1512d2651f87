import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from visco2fly.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(settings.log_dir) if settings.log_dir else Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(parents=True, exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "visco2fly.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from visco2fly.routers import airports, offers, search
from visco2fly.services.search_orchestrator import search_orchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.amadeus_client_id:
        logger.warning("Amadeus credentials missing, searches will go straight to Duffel")
    if not settings.duffel_api_key:
        logger.warning("Duffel API key missing, no fallback provider available")
    if not settings.google_api_key:
        logger.warning("Google API key missing, offers will have no emissions data")

    yield

    # Shutdown
    await search_orchestrator.close()
    logger.info("Provider clients closed")


app = FastAPI(
    title="VisCO2Fly",
    description="Flight search with per-itinerary CO2 emissions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected malformed request to {request.url.path}")
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid search parameters", "detail": jsonable_encoder(exc.errors())},
    )


app.include_router(search.router, tags=["search"])
app.include_router(airports.router, tags=["airports"])
app.include_router(offers.router, prefix="/offers", tags=["offers"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "visco2fly"}
