"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import arrivals, buses, deps, diagnostics, network, routes, stops, trip_plan, ws
from app.config import settings
from app.core.broadcaster import Broadcaster
from app.core.engine import TransitEngine
from app.core.errors import ConfigInvalid, NotFound
from app.core.network_source import NetworkSourceClient
from app.core.scheduler import create_scheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    source = NetworkSourceClient()
    broadcaster = Broadcaster()
    await broadcaster.connect()

    engine = TransitEngine(source, broadcaster)
    deps.engine = engine

    # Load the initial network; the API answers 503 until one is published
    try:
        if await engine.load_network() is None:
            logger.error("Initial network load failed - waiting for refresh or PUT /api/network")
    except Exception:
        logger.exception("Failed to load initial network - will retry")

    scheduler = create_scheduler(engine)
    scheduler.start()
    logger.info("Transit service started - ticking every %ds", settings.tick_interval_seconds)

    yield

    # Shutdown
    scheduler.shutdown(wait=False)
    await source.close()
    await broadcaster.close()
    deps.engine = None
    logger.info("Transit service shut down")


app = FastAPI(
    title="Addis Ababa Transit Service",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stops.router)
app.include_router(routes.router)
app.include_router(buses.router)
app.include_router(arrivals.router)
app.include_router(trip_plan.router)
app.include_router(network.router)
app.include_router(diagnostics.router)
app.include_router(ws.router)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc), "kind": exc.kind, "id": exc.identifier})


@app.exception_handler(ConfigInvalid)
async def config_invalid_handler(request: Request, exc: ConfigInvalid):
    return JSONResponse(status_code=422, content={"detail": "network document rejected", "problems": exc.problems})



@app.get("/api/health")
async def health():
    engine = deps.engine
    if engine is None or not engine.ready:
        return {"status": "starting"}
    view = engine.view()
    return {"status": "ok", "network_version": view.network.version, "tick": view.fleet.tick}
