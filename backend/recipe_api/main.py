import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from recipe_api.core.config import Settings, settings as default_settings
from recipe_api.core.database import Database
from recipe_api.core.errors import install_exception_handlers
from recipe_api.core.middleware import SessionMiddleware
from recipe_api.api.routes import auth, favourites, filters, pages, recipes, reviews, shopping_list

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage app lifecycle events.

    Startup: create tables (first use of the database, which builds the engine)
    Shutdown: release the connection pool
    """
    # In production, use migrations (Alembic) instead of create_all
    app.state.database.create_all()
    yield
    app.state.database.dispose()


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the API application.

    settings and database are injected so tests can run against their own
    configuration and an in-memory database.
    """
    settings = settings or default_settings
    database = database or Database(settings.DATABASE_URL, pool_pre_ping=True)

    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title="Recipe Browser API",
        description="Recipes, reviews, favourites and shopping lists",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    # Engine is created lazily on first use, not here
    app.state.database = database

    install_exception_handlers(app)

    # Protected pages redirect to login before any handler runs
    app.add_middleware(SessionMiddleware, settings=settings)
    # CORS middleware - added last so it wraps everything, redirects included
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,  # Session cookie must travel with API calls
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # All API routes are prefixed with /api
    app.include_router(auth.router, prefix="/api")
    app.include_router(auth.user_router, prefix="/api")
    app.include_router(recipes.router, prefix="/api")
    app.include_router(reviews.router, prefix="/api")
    app.include_router(favourites.router, prefix="/api")
    app.include_router(shopping_list.router, prefix="/api")
    app.include_router(filters.router, prefix="/api")
    app.include_router(pages.router)

    @app.get("/")
    async def root():
        """Root endpoint - API information"""
        return {"message": "Recipe Browser API", "version": "1.0.0"}

    @app.get("/health")
    async def health():
        """Health check endpoint - used by monitoring/deployment tools"""
        return {"status": "healthy"}

    return app


app = create_app()
