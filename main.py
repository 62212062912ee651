import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from country_cache.api.endpoints import country, status
from country_cache.config import Config
from country_cache.core.refresh import RefreshService
from country_cache.core.repository import CountryRepository
from country_cache.database import build_engine, build_session_factory, init_db
from country_cache.exceptions import InvalidRequestError, SourceUnavailableError

logger = logging.getLogger(__name__)


def configure_logging(level):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config=Config, transport=None) -> FastAPI:
    """
    Build the API. ``transport`` replaces the outbound HTTP transport, which
    lets callers point the refresh at canned responses.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(config.database_url)
        init_db(engine)
        repository = CountryRepository(build_session_factory(engine))

        async with httpx.AsyncClient(
            timeout=config.http_timeout, transport=transport
        ) as client:
            app.state.config = config
            app.state.engine = engine
            app.state.repository = repository
            app.state.refresh_service = RefreshService(repository, client, config)
            yield
            await app.state.refresh_service.drain()

        engine.dispose()

    app = FastAPI(title="Country Currency & Exchange API", lifespan=lifespan)
    app.include_router(country.router)
    app.include_router(status.router)

    @app.exception_handler(SourceUnavailableError)
    async def source_unavailable_handler(request: Request, exc: SourceUnavailableError):
        return JSONResponse(
            status_code=503,
            content={"error": "External data source unavailable", "details": str(exc)},
        )

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "details": str(exc)},
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health")
    def health_check(request: Request):
        """Health check endpoint to verify database connection"""
        engine = request.app.state.engine
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Database health check failed: %s", e)
            return {
                "status": "unhealthy",
                "database": {"status": "disconnected", "type": engine.dialect.name},
            }
        return {
            "status": "healthy",
            "database": {"status": "connected", "type": engine.dialect.name},
        }

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Country Currency & Exchange API",
            "endpoints": {
                "GET /health": "Health check and database status",
                "POST /countries/refresh": "Refresh country data",
                "GET /countries": "Get all countries (supports ?region=, ?currency=, ?sort=)",
                "GET /countries/{name}": "Get country by name",
                "DELETE /countries/{name}": "Delete country",
                "GET /status": "Get system status",
                "GET /countries/image": "Get summary image",
            },
        }

    return app


configure_logging(Config.log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=Config.port)
