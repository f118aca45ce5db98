"""
Authentication routes and client session dependencies
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from auth_utils import create_session_token, decode_session_token, new_client_id, SESSION_TTL_DAYS
from backend.errors import AppError, AuthError
from backend.utils.responses import app_error_response, success_response
from config.settings import IS_PRODUCTION
from services.app_store import AppStore
from utils.security_utils import is_valid_client_id
from utils.session_manager import SessionManager

logger = logging.getLogger(__name__)

SESSION_COOKIE = "kyr_session"

# Create auth router
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


class ClientSessionMiddleware(BaseHTTPMiddleware):
    """
    Resolve the client session from the signed session cookie.
    Requests without a valid cookie get a fresh client id, issued on the response.
    """
    async def dispatch(self, request, call_next):
        client_id = decode_session_token(request.cookies.get(SESSION_COOKIE))
        issue_cookie = False
        if not is_valid_client_id(client_id):
            client_id = new_client_id()
            issue_cookie = True
        request.state.client_id = client_id

        response = await call_next(request)

        if issue_cookie:
            response.set_cookie(
                key=SESSION_COOKIE,
                value=create_session_token(client_id),
                httponly=True,
                secure=IS_PRODUCTION,
                samesite="Lax",
                max_age=SESSION_TTL_DAYS * 86400,
            )
        return response


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_app_store(request: Request, sessions: SessionManager = Depends(get_session_manager)) -> AppStore:
    """Dependency returning the AppStore that owns this client's state"""
    return sessions.get_store(request.state.client_id)


# Request models
class SignInRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SignUpRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None
    preferred_language: Optional[str] = "en"


@auth_router.post("/signin")
async def sign_in(request: SignInRequest, store: AppStore = Depends(get_app_store)):
    """Sign in with email and password"""
    try:
        session = await store.sign_in(request.email, request.password)
    except AppError as e:
        return app_error_response(e)
    return success_response(session.model_dump(mode="json"), message="Signed in")


@auth_router.post("/signup")
async def sign_up(request: SignUpRequest, store: AppStore = Depends(get_app_store)):
    """Create an account and sign in"""
    try:
        session = await store.sign_up(
            request.email,
            request.password,
            request.confirm_password,
            {"preferred_language": request.preferred_language},
        )
    except AppError as e:
        return app_error_response(e)
    return success_response(session.model_dump(mode="json"), message="Account created")


@auth_router.post("/signout")
async def sign_out(store: AppStore = Depends(get_app_store)):
    """Sign out. Always succeeds."""
    session = await store.sign_out()
    return success_response(session.model_dump(mode="json"), message="Signed out")


@auth_router.get("/me")
async def get_current_user_info(store: AppStore = Depends(get_app_store)):
    """Current identity and tier"""
    if not store.authenticated:
        return app_error_response(AuthError("Not signed in"))
    return success_response({
        **store.session.model_dump(mode="json"),
        "is_premium": store.is_premium(),
    })
