import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from shortlink_app.config import settings
from shortlink_app.database.connection import engine, Base
from shortlink_app.exceptions import ShortenerError
from shortlink_app.api.v1 import urls, analytics, redirect

# Import models to ensure they're registered with Base
from shortlink_app.models import URL, ClickEvent

logger = logging.getLogger("shortlink.api")

# Create database tables
Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A URL shortener with click analytics built with FastAPI",
    debug=settings.debug
)


@app.exception_handler(ShortenerError)
async def shortener_error_handler(request: Request, exc: ShortenerError):
    """Map domain errors to HTTP responses"""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


######## Include routers
app.include_router(urls.router, prefix="/api/v1")
app.include_router(analytics.router, prefix="/api/v1")
# Catch-all /{identifier} goes last
app.include_router(redirect.router)
