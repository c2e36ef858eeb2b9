"""
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.config import get_settings
from backend.database import engine, Base, AsyncSessionLocal
from backend import models  # noqa: F401  registers all tables on Base.metadata
from backend.api import recipes, statistics, campuses, dishes, ingredients
from backend.services.seed_data import seed_catalog
from backend.utils.cache import cache_manager
from backend.utils.exceptions import ValidationFailure, NotFoundError
from backend.utils.logger import get_logger

settings = get_settings()
# configures the package logger; module loggers under backend.* propagate to it
logger = get_logger("backend")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    # Seed campuses, ingredients and dishes into an empty catalog
    if settings.SEED_ON_STARTUP:
        async with AsyncSessionLocal() as session:
            await seed_catalog(session)
            await session.commit()

    yield

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation failed", "errors": exc.errors},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


# Include routers
app.include_router(recipes.router, prefix="/api/recipes", tags=["Recipes"])
app.include_router(statistics.router, prefix="/api/statistics", tags=["Statistics"])
app.include_router(campuses.router, prefix="/api/campuses", tags=["Campuses"])
app.include_router(dishes.router, prefix="/api/dishes", tags=["Dishes"])
app.include_router(ingredients.router, prefix="/api/ingredients", tags=["Ingredients"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "cache": cache_manager.stats()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
