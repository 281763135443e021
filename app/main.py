from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.routers import rides, opening_times
from app.scheduler import start_scheduler, stop_scheduler
from app.parks import PARKS, transport

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

SUPPORTED_PARKS = list(PARKS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Disney wait-times API...")
    start_scheduler()
    yield
    logger.info("Shutting down...")
    stop_scheduler()
    await transport.aclose()


app = FastAPI(
    title="Disney Parks — Live Wait Times API",
    description=(
        "Live attraction wait times joined with each attraction's "
        "operating hours, plus park and ride opening calendars."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Register all routers for every supported park
for park_id in SUPPORTED_PARKS:
    app.include_router(rides.router,         prefix=f"/{park_id}", tags=[park_id])
    app.include_router(opening_times.router, prefix=f"/{park_id}", tags=[park_id])


@app.get("/", tags=["root"])
async def root():
    return {
        "api": "Disney Parks Live Wait Times API",
        "version": "1.0.0",
        "supported_parks": SUPPORTED_PARKS,
        "docs": "/docs",
    }


@app.get("/health", tags=["root"])
async def health():
    return {"status": "ok"}
