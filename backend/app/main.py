"""BorderHop Backend API - Main Application"""
import structlog
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.api.v1.router import api_router
from app.models.database import init_db, close_db
from app.services.circle_client import close_circle_client, get_circle_client
from app.services.routing import get_cctp_config

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting BorderHop API", version=settings.app_version)

    app.state.database_connected = await init_db()
    if not app.state.database_connected:
        logger.warning("Using in-memory transfer storage")

    await get_circle_client()
    logger.info(
        "Circle CCTP configured",
        environment=settings.circle_environment,
        api_key=bool(settings.circle_api_key),
        client_key=bool(settings.circle_client_key),
    )

    yield

    await close_circle_client()
    await close_db()
    logger.info("BorderHop API shutdown complete")


def _error_body(detail) -> dict:
    if isinstance(detail, dict):
        return {"success": False, **detail}
    return {"success": False, "error": str(detail)}


def register_exception_handlers(app: FastAPI) -> None:
    """Map every failure onto a JSON body with an ``error`` key"""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("Request validation failed", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Missing required fields",
                "details": [
                    {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(status_code=404, content={"error": "Route not found"})
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": str(exc)},
        )


def create_app() -> FastAPI:
    """Create FastAPI application"""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="BorderHop cross-chain USDC remittance API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.database_connected = False

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Service banner"""
        return {
            "service": "BorderHop Backend API",
            "version": settings.app_version,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "api": f"{settings.api_prefix}/*",
                "circle": f"{settings.api_prefix}/circle/status",
            },
            "documentation": "BorderHop Cross-Chain Remittance API",
            "timestamp": datetime.utcnow().isoformat(),
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        connected = app.state.database_connected
        return {
            "status": "healthy",
            "service": "BorderHop Backend",
            "version": settings.app_version,
            "database": "connected" if connected else "disconnected",
            "storage": "database" if connected else "memory",
            "circle": {
                "environment": settings.circle_environment,
                "apiConfigured": bool(settings.circle_api_key),
                "clientConfigured": bool(settings.circle_client_key),
            },
            "chains": list(get_cctp_config().keys()),
            "timestamp": datetime.utcnow().isoformat(),
        }

    @app.get(f"{settings.api_prefix}/circle/status")
    async def circle_status():
        """Circle CCTP V2 configuration"""
        return {
            "status": "configured",
            "environment": settings.circle_environment,
            "baseUrl": settings.circle_base_url,
            "supportedChains": [
                {
                    "name": chain,
                    "domain": config.domain,
                    "usdc": config.usdc,
                    "tokenMessenger": config.token_messenger,
                }
                for chain, config in get_cctp_config().items()
            ],
            "timestamp": datetime.utcnow().isoformat(),
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
