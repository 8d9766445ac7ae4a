"""
=============================================================================
themoviedb - movie browsing and review data service
=============================================================================
Features:
  - Cache-first movie details with stub/full record refresh
  - Concurrent fan-out of movie, reviews and own-review reads
  - Write-through caching of search hits, details and own reviews
  - Live movie + reviews stream (SSE) driven by local review changes
=============================================================================
"""

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import settings
from .dependencies import init_resources, close_resources
from .exceptions import (
    CouldNotLoadError,
    could_not_load_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .limiter import limiter
from .logging_config import setup_logging
from .middleware import RequestTrackingMiddleware
from .routers import movies_router, reviews_router

app = FastAPI(
    title="TheMovieDb Data API",
    description="Movie metadata and reviews, cached locally and merged with the viewer's own reviews",
    version="2.0.0"
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTrackingMiddleware)

app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(CouldNotLoadError, could_not_load_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(movies_router.router, tags=["movies"])
app.include_router(reviews_router.router, tags=["reviews"])


@app.on_event("startup")
async def startup():
    """Initialize connections on startup"""
    setup_logging(settings.LOG_LEVEL)
    await init_resources()


@app.on_event("shutdown")
async def shutdown():
    """Cleanup connections on shutdown"""
    await close_resources()


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
