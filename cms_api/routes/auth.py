"""
Authentication routes for login, register, and token management.
"""
from fastapi import APIRouter, Depends, Request

from ..auth import IdentityProvider, create_tokens, get_identity_provider, get_required_principal
from ..config import get_settings
from ..dependencies import get_user_service
from ..limiter import limiter
from ..logging_config import api_logger
from ..responses import created, retrieved, success
from ..schemas.auth import RefreshRequest, RegisterRequest, TokenResponse, UserLogin
from ..services.authorization import Principal
from ..services.users import UserService, to_response

settings = get_settings()

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201)
@limiter.limit(settings.register_rate_limit)
def register(request: Request, user_data: RegisterRequest, users: UserService = Depends(get_user_service)):
    """Register a new viewer account."""
    user = users.register(user_data)
    return created(to_response(user), "User registered successfully")


@router.post("/login")
@limiter.limit(settings.login_rate_limit)
def login(request: Request, credentials: UserLogin, users: UserService = Depends(get_user_service)):
    """Login with JSON body (email/password)."""
    user = users.authenticate(credentials.email, credentials.password)
    access_token, refresh_token = create_tokens(user["id"])
    api_logger.info("User logged in", user_id=user["id"])
    return success(
        TokenResponse(access_token=access_token, refresh_token=refresh_token, user=to_response(user)),
        "Login successful",
    )


@router.post("/refresh")
@limiter.limit(settings.login_rate_limit)
def refresh_tokens(
    request: Request,
    refresh_request: RefreshRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """Get new access and refresh tokens using a valid refresh token."""
    access_token, refresh_token = identity.refresh(refresh_request.refresh_token)
    return success(TokenResponse(access_token=access_token, refresh_token=refresh_token), "Tokens refreshed")


@router.get("/me")
def get_me(
    principal: Principal = Depends(get_required_principal),
    users: UserService = Depends(get_user_service),
):
    """Get current authenticated user."""
    return retrieved(to_response(users.get(principal.id)))
