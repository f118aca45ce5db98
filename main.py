"""
KnowYourRights.ai backend
State-specific rights guides, "what to say" scripts, interaction recording
and the premium subscription gate
"""

from pathlib import Path
import logging
import traceback
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

# Import routers
from auth import auth_router, ClientSessionMiddleware
from routers.billing_router import billing_router
from routers.guides_router import router as guides_router
from routers.recording_router import router as recording_router
from routers.scripts_router import router as scripts_router
from routers.session_router import router as session_router
from backend.utils.responses import success_response
from config.settings import settings, IS_PRODUCTION
from services.providers import build_providers
from utils.session_manager import SessionManager
from utils.state_store import build_state_store

# Logging setup - write ALL events to logs/app.log
LOGS_DIR = Path("./logs")
LOGS_DIR.mkdir(exist_ok=True)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "app.log"),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)


# Uncaught exception middleware - logs all unhandled exceptions and returns 500
class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Uncaught exception: {e}\n{traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content={"ok": False, "data": {}, "error": "internal_error", "message": "Internal Server Error"}
            )


# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses: CSP, HSTS, X-Frame-Options, X-Content-Type-Options"""
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        # JSON API only; the frontend is served elsewhere
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; "
            "frame-ancestors 'none'; "
            "base-uri 'none';"
        )

        # Only set in production where HTTPS is guaranteed
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"

        return response


def create_app(sessions: Optional[SessionManager] = None) -> FastAPI:
    """
    Build the application. Collaborators are chosen once at startup unless a
    SessionManager is passed in (tests).
    """
    app = FastAPI(title="KnowYourRights.ai API")
    app.state.sessions = sessions

    app.add_middleware(UncaughtExceptionMiddleware)
    app.add_middleware(ClientSessionMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS MUST be near the bottom
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def build_collaborators():
        """Validate configuration, create tables and select collaborators"""
        if app.state.sessions is not None:
            return
        if settings.database_url:
            from database import init_db
            try:
                await init_db()
                logger.info("✅ Database initialized successfully")
            except Exception as e:
                logger.error(f"❌ Database initialization failed: {e}")
                raise
        providers = build_providers(settings)
        state_store = build_state_store(settings.redis_url, settings.state_dir)
        app.state.sessions = SessionManager(
            providers,
            state_store,
            max_stores=settings.max_client_sessions,
            idle_seconds=settings.session_idle_seconds,
        )

    @app.on_event("shutdown")
    async def close_sessions():
        if app.state.sessions is not None:
            app.state.sessions.close()

    @app.get("/api/health")
    async def health():
        return success_response({"status": "ok"})

    app.include_router(auth_router)
    app.include_router(session_router)
    app.include_router(guides_router)
    app.include_router(scripts_router)
    app.include_router(recording_router)
    app.include_router(billing_router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
