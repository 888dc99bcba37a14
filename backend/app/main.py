"""
Strategy Results Dashboard - FastAPI Application
"""
import sys
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.config import get_settings
from app.api.endpoints import strategies as strategies_endpoints

app_settings = get_settings()

# ── Logging ─────────────────────────────────────────────────────────────────
logger.remove()
logger.add(sys.stderr, level=app_settings.LOG_LEVEL.upper())

# Create FastAPI app
app = FastAPI(
    title=app_settings.PROJECT_NAME,
    version="1.0.0",
    description="Read-only analytics over precomputed trading-strategy backtest results"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    """Log request latency and expose it as X-Process-Time (ms)."""
    start = time.monotonic()
    response = await call_next(request)
    elapsed_ms = (time.monotonic() - start) * 1000
    response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}"
    logger.debug(f"{request.method} {request.url.path} took {elapsed_ms:.2f} ms")
    return response


# Strategy results endpoints
app.include_router(
    strategies_endpoints.router,
    prefix=f"{app_settings.API_V1_PREFIX}/strategies",
    tags=["strategies"],
)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Strategy Results Dashboard API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "strategy-dashboard-api"}


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
