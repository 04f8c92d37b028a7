import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from resume_analyzer.config import Settings, configure_logging, get_settings
from resume_analyzer.database import Database
from resume_analyzer.dependencies import get_ai_client, get_app_settings
from resume_analyzer.errors import register_error_handlers
from resume_analyzer.health import check_database, process_metrics
from resume_analyzer.routers import resumes, ui
from resume_analyzer.services.gemini import GeminiClient
from resume_analyzer.ui.api_client import ApiClient

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

RESUME_ENDPOINTS = {
    "POST /api/resumes/upload": "Upload and analyze a resume",
    "GET /api/resumes": "Get all analyzed resumes",
    "GET /api/resumes/{id}": "Get specific resume details",
    "GET /api/resumes/stats": "Get resume statistics",
    "DELETE /api/resumes/{id}": "Delete a resume",
    "GET /health": "Server health check",
}


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around one Settings instance.

    The database pool, AI client and UI API client are created in the
    lifespan and kept on ``app.state``; nothing connects at import time.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} ({settings.environment})")
        database = Database(settings)
        await database.connect()
        app.state.database = database
        app.state.ai_client = GeminiClient(settings)
        if not app.state.ai_client.is_configured:
            logger.warning("GOOGLE_API_KEY is not set; uploads will fail until it is")

        if settings.api_base_url:
            api_client = ApiClient(
                settings.api_base_url,
                retry_attempts=settings.ui_retry_attempts,
                retry_delay=settings.ui_retry_delay,
            )
        else:
            api_client = ApiClient(
                "http://resume-analyzer",
                transport=httpx.ASGITransport(app=app),
                retry_attempts=settings.ui_retry_attempts,
                retry_delay=settings.ui_retry_delay,
            )
        app.state.api_client = api_client
        yield
        logger.info(f"Shutting down {settings.app_name}")
        await api_client.aclose()
        await database.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="AI-powered resume analysis and feedback",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        if settings.is_development:
            client = request.client.host if request.client else "-"
            logger.info(f"{request.method} {request.url.path} - IP: {client}")
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if request.url.path.startswith("/api/"):
            response.headers.update(NO_STORE_HEADERS)
        return response

    register_error_handlers(app, settings)

    app.include_router(resumes.router)
    app.include_router(ui.router)

    @app.get("/")
    async def root(request: Request):
        if "text/html" in request.headers.get("accept", ""):
            return RedirectResponse("/ui")
        return {
            "success": True,
            "message": f"{settings.app_name} Server",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": RESUME_ENDPOINTS,
            "ui": "/ui",
        }

    @app.get("/api")
    async def api_info():
        return {
            "success": True,
            "message": settings.app_name,
            "version": VERSION,
            "description": "AI-powered resume analysis and feedback system",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "features": [
                "PDF text extraction",
                "AI-powered content analysis",
                "Skills identification",
                "Resume rating and feedback",
                "Improvement suggestions",
                "Historical resume tracking",
            ],
            "endpoints": RESUME_ENDPOINTS,
        }

    @app.get("/health")
    async def health_check(
        request: Request,
        app_settings: Settings = Depends(get_app_settings),
        ai_client: GeminiClient = Depends(get_ai_client),
    ):
        """Server, storage and AI configuration status; 503 when storage is down."""
        database: Database = request.app.state.database
        db_health = await check_database(database)
        timestamp = datetime.now(timezone.utc).isoformat()

        if db_health.status != "connected":
            logger.error(f"Health check failed: database {db_health.status}")
            body = {
                "success": False,
                "message": "Server is experiencing issues",
                "timestamp": timestamp,
                "database": {"status": "disconnected", "error": db_health.error},
            }
            return JSONResponse(status_code=503, content=body)

        return {
            "success": True,
            "message": "Server is healthy!",
            "timestamp": timestamp,
            "server": {
                "status": "running",
                "environment": app_settings.environment,
                "port": app_settings.port,
                **process_metrics(),
            },
            "database": {
                "status": "connected",
                "latency_ms": db_health.latency_ms,
                "total_resumes": await database.count_resumes(),
            },
            "ai": await ai_client.health(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.is_development,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )
