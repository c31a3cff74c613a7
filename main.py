from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from collector_app.config import settings
from collector_app.database.connection import engine, Base
from collector_app.exceptions import RateLimitExceeded
from collector_app.logging_config import logger
from collector_app.api.v1 import beacon, collect, visitors

# Import models to ensure they're registered with Base
from collector_app.models import Visitor

# Create database tables
Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Visitor beacon and fingerprint collector",
    debug=settings.debug
)

# Public beacon: any site may embed the pixel or post to the collector
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    retry_after = max(1, -(-exc.retry_after_ms // 1000))  # Whole seconds, rounded up
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"success": False, "error": "Too many requests"},
        headers={"Retry-After": str(retry_after)},
    )


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "beacon": "/assets/pixel.png",
        "collect": "/api/collect",
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "environment": settings.environment}


######## Include routers
app.include_router(beacon.router)
app.include_router(collect.router)
app.include_router(visitors.router)

logger.info("%s %s ready (%s)", settings.app_name, settings.app_version, settings.environment)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
