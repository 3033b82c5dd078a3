"""
Wine Tour Itinerary Builder — Backend Entry Point
FastAPI + Socket.IO server for the itinerary time-cascade engine,
with health checks, CORS, and request timing middleware.
"""

import os
import time
import logging

from dotenv import load_dotenv

load_dotenv()

import socketio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from api.routes import router as api_router
from engine.itinerary_engine import router as engine_router, edit_from_payload

logger = logging.getLogger("itinerary_builder")
perf_logger = logging.getLogger("engine_perf")

SLOW_REQUEST_MS = float(os.getenv("SLOW_REQUEST_MS", "500"))

# ─── Socket.IO Server ────────────────────────────────────────────────
sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)

# ─── FastAPI App ──────────────────────────────────────────────────────
app = FastAPI(
    title="Wine Tour Itinerary Builder",
    description="Arrival/departure time cascade engine for multi-stop wine tours",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount REST routes
app.include_router(api_router, prefix="/api")
app.include_router(engine_router, prefix="/api/engine", tags=["engine"])


# ─── Request Timing Middleware ────────────────────────────────────────
@app.middleware("http")
async def perf_timing_middleware(request: Request, call_next):
    """Times all requests; warns on slow ones and exposes X-Pipeline-Ms."""
    t0 = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - t0) * 1000

    if elapsed_ms > SLOW_REQUEST_MS:
        perf_logger.warning(
            f"[PERF] {request.method} {request.url.path} — {elapsed_ms:.0f}ms (slow)"
        )
    else:
        perf_logger.debug(f"[PERF] {request.method} {request.url.path} — {elapsed_ms:.0f}ms")

    response.headers["X-Pipeline-Ms"] = f"{elapsed_ms:.0f}"
    return response


# ─── Health Check ─────────────────────────────────────────────────────
@app.get("/api/health")
async def health_check():
    """
    Health check. Returns:
      status: "green" (all OK) | "degraded" (drive-time cache down)
      details: per-subsystem checks
    Never raises; catches all errors internally.
    """
    from engine import travel_time

    details = {
        "redis": False,
        "drive_cache_entries": 0,
        "estimator": "mock" if travel_time.DEMO_MODE or not travel_time.GOOGLE_MAPS_API_KEY else "google",
        "engine": False,
    }

    # 1. Redis PING → PONG
    try:
        from store.drive_cache import drive_cache
        if drive_cache.connected:
            details["redis"] = bool(await drive_cache.client.ping())
            details["drive_cache_entries"] = await drive_cache.count_cached()
    except Exception as e:
        logger.debug(f"[HEALTH] Redis check failed: {e}")

    # 2. Engine smoke test: one-stop schedule
    try:
        from engine.models import Stop
        from engine.schedule import recompute_schedule
        probe = Stop(wineryId=0, order=1, arrivalTime="10:00", departureTime="10:00")
        details["engine"] = recompute_schedule([probe], "10:00")[0].departureTime == "11:15"
    except Exception as e:
        logger.error(f"[HEALTH] Engine check failed: {e}")

    if details["engine"] and details["redis"]:
        status = "green"
    elif details["engine"]:
        status = "degraded"
    else:
        status = "red"

    return {"status": status, "details": details}


# Backward-compatible alias for Docker healthcheck (uses /health)
@app.get("/health")
async def health_check_alias():
    return await health_check()


# ─── Socket.IO Events ────────────────────────────────────────────────
@sio.event
async def connect(sid, environ):
    logger.info(f"[WS] Client connected: {sid}")


@sio.event
async def disconnect(sid):
    logger.info(f"[WS] Client disconnected: {sid}")


@sio.on("itinerary:edit")
async def handle_itinerary_edit(sid, data):
    """
    Receives {itinerary, command} from the builder page, runs the
    cascade engine, and pushes the updated itinerary back to the client.
    """
    try:
        result = await edit_from_payload(data)
        await sio.emit("itinerary:updated", result, room=sid)
    except ValidationError as e:
        await sio.emit("itinerary:error", {"error": str(e)}, room=sid)
    except Exception as e:
        logger.error(f"[WS] Edit error: {e}")
        await sio.emit("itinerary:error", {"error": str(getattr(e, "detail", e))}, room=sid)


# ─── Startup / Shutdown Lifecycle ─────────────────────────────────────
@app.on_event("startup")
async def on_startup():
    """Attempt Redis connection; drive times are simply not cached without it."""
    try:
        from store.drive_cache import drive_cache
        await drive_cache.connect()
        logger.info("[STARTUP] Redis drive-time cache connected ✓")
    except Exception as e:
        logger.warning(f"[STARTUP] Redis unavailable — drive times will not be cached: {e}")


@app.on_event("shutdown")
async def on_shutdown():
    try:
        from store.drive_cache import drive_cache
        await drive_cache.disconnect()
    except Exception as e:
        logger.debug(f"[SHUTDOWN] Redis disconnect failed: {e}")


# ─── Mount Socket.IO as ASGI sub-app ─────────────────────────────────
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)

# Uvicorn will import `main:socket_app` (or `main:app` for REST-only)
app = socket_app


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
