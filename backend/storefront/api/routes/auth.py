"""Authentication endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import Settings, get_settings
from storefront.core.dependencies import (
    get_current_user,
    get_db,
    get_mailer,
    get_reset_token_manager,
    get_token_issuer,
)
from storefront.core.security import ResetTokenManager, SessionTokenIssuer
from storefront.models.user import User
from storefront.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from storefront.schemas.user import UserRead
from storefront.services import auth as auth_service
from storefront.services.mailer import Mailer

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
) -> TokenResponse:
    token = await auth_service.register(session, payload, issuer)
    return TokenResponse(token=token)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
) -> TokenResponse:
    token = await auth_service.login(session, payload, issuer)
    return TokenResponse(token=token)


def _reset_url_base(request: Request, settings: Settings) -> str:
    origin = settings.public_base_url or str(request.base_url)
    return f"{origin.rstrip('/')}{settings.api_prefix}/auth/resetpassword"


@router.post("/forgotpassword", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    reset_tokens: ResetTokenManager = Depends(get_reset_token_manager),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    await auth_service.forgot_password(
        session,
        payload.email,
        _reset_url_base(request, settings),
        mailer,
        reset_tokens,
        mail_timeout=settings.mail_timeout_seconds,
    )
    return MessageResponse(message="Email sent")


@router.put("/resetpassword/{token}", response_model=TokenResponse)
async def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    session: AsyncSession = Depends(get_db),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
    reset_tokens: ResetTokenManager = Depends(get_reset_token_manager),
) -> TokenResponse:
    new_token = await auth_service.reset_password(session, token, payload.password, issuer, reset_tokens)
    return TokenResponse(token=new_token)


@router.get("/me", response_model=UserRead)
async def get_current_user_info(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)


@router.post("/logout", response_model=MessageResponse)
async def logout(_: User = Depends(get_current_user)) -> MessageResponse:
    # Tokens are stateless; the client discards its copy.
    return MessageResponse(message="User logged out successfully")
