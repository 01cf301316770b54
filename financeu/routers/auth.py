"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from financeu.config import get_settings
from financeu.database import get_db
from financeu.dependencies import CurrentUser, clear_auth_cookie, get_current_user, set_auth_cookie
from financeu.rate_limit import limiter
from financeu.schemas.auth import (
    AuthResponse,
    CurrentUserResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    UserResponse,
    VerifyEmailRequest,
)
from financeu.services.auth import get_auth_service
from financeu.services.credential_store import get_credential_store
from financeu.services.jwt import get_jwt_service
from financeu.services.email_verification import get_email_verification_service
from financeu.services.notifications import get_account_notifier

logger = logging.getLogger("financeu")

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")
def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> AuthResponse:
    """Register a new user account, start a session and send a verification link."""
    auth_service = get_auth_service()
    result = auth_service.register(db, body.email, body.password, body.name)

    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    ticket = get_email_verification_service().issue(db, result.user.id)  # type: ignore[union-attr]
    get_account_notifier().deliver_verification(background_tasks, ticket)

    token = get_jwt_service().create_token_for_user(result.user)  # type: ignore[arg-type]
    set_auth_cookie(response, token)
    return AuthResponse(message="Registration successful", user=UserResponse.from_public(result.user), token=token)  # type: ignore[arg-type]


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")
def login(request: Request, response: Response, body: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    """Authenticate and receive a session token."""
    auth_service = get_auth_service()
    result = auth_service.authenticate(db, body.email, body.password)

    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)

    token = get_jwt_service().create_token_for_user(result.user)
    set_auth_cookie(response, token)
    return AuthResponse(message="Login successful", user=UserResponse.from_public(result.user), token=token)  # type: ignore[arg-type]


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    """Clear the session cookie. Bearer clients simply discard their token."""
    clear_auth_cookie(response)
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=CurrentUserResponse)
def me(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> CurrentUserResponse:
    """Return the signed-in user."""
    public_user = get_credential_store().find_user_by_id(db, user.user_id)
    if not public_user:
        raise HTTPException(status_code=404, detail="User not found")
    return CurrentUserResponse(user=UserResponse.from_public(public_user))


@router.post("/forgot-password", response_model=ForgotPasswordResponse, response_model_exclude_none=True)
@limiter.limit("3/minute")
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> ForgotPasswordResponse:
    """Issue a password reset code.

    The code is delivered out-of-band; it is also echoed in the response only
    when EXPOSE_RESET_CODE is enabled (development).
    """
    auth_service = get_auth_service()
    reset = auth_service.request_password_reset(db, body.email)

    if reset.issued:
        get_account_notifier().deliver_reset_code(background_tasks, reset.email, reset.name, reset.code, reset.expires_at)  # type: ignore[arg-type]

    if get_settings().EXPOSE_RESET_CODE:
        return ForgotPasswordResponse(
            message="If an account exists with that email, a reset code has been generated",
            reset_code=reset.code,
        )
    return ForgotPasswordResponse(message="If an account exists with that email, a reset code has been sent")


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit("5/minute")
def reset_password(request: Request, body: ResetPasswordRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """Set a new password using a reset code."""
    auth_service = get_auth_service()
    result = auth_service.reset_password(db, body.email, body.token, body.new_password)

    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    return MessageResponse(message="Password reset successful")


@router.post("/verify-email", response_model=AuthResponse)
@limiter.limit("10/minute")
def verify_email(
    request: Request, response: Response, body: VerifyEmailRequest, db: Session = Depends(get_db)
) -> AuthResponse:
    """Confirm an email address and start a session for it."""
    user = get_email_verification_service().verify(db, body.email, body.token)
    token = get_jwt_service().create_token_for_user(user)
    set_auth_cookie(response, token)
    return AuthResponse(message="Email verified successfully", user=UserResponse.from_public(user), token=token)


@router.post("/resend-verification", response_model=MessageResponse)
@limiter.limit("3/minute")
def resend_verification(
    request: Request,
    body: ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Send a new verification link to an unverified account."""
    ticket = get_email_verification_service().resend(db, body.email)
    if ticket:
        get_account_notifier().deliver_verification(background_tasks, ticket)
    return MessageResponse(message="If an unverified account exists with that email, a verification link has been sent")
