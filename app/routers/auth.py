"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenResponse,
)
from app.services.auth import AuthResult, get_auth_service
from app.services.jwt import get_jwt_service
from app.services.mailer import Mailer, get_mailer

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _token_response(result: AuthResult) -> TokenResponse:
    user = result.user
    token = get_jwt_service().create_token(
        user_id=user.id,  # type: ignore[union-attr]
        email=user.email,  # type: ignore[union-attr]
        session_token=result.session_token,  # type: ignore[arg-type]
    )
    return TokenResponse(token=token, user_id=user.id, email=user.email, name=user.name)  # type: ignore[union-attr]


@router.post("/register", response_model=RegisterResponse)
def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> RegisterResponse:
    """Register a new account. The account must be activated before login."""
    user = get_auth_service().register(db, mailer, body.name, body.email, body.password)
    return RegisterResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        activated=user.activated,
        message="Please check your email to activate your account.",
    )


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Authenticate and receive an access token."""
    result = get_auth_service().authenticate(db, body.email, body.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)
    return _token_response(result)


@router.post("/logout")
def logout(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    """Log out everywhere by forgetting the user's remember digest."""
    get_auth_service().logout(db, user)
    return {"message": "Logged out"}


@router.get("/activate", response_model=TokenResponse)
def activate(email: str, token: str, db: Session = Depends(get_db)) -> TokenResponse:
    """Activate an account from the emailed link and log the user in."""
    result = get_auth_service().activate_account(db, email, token)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return _token_response(result)


@router.post("/forgot-password")
def forgot_password(
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Request a password reset email."""
    get_auth_service().request_password_reset(db, mailer, body.email)
    return {"message": "If an account exists with that email, a password reset link has been sent."}


@router.post("/reset-password", response_model=TokenResponse)
def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Reset password using a valid token. Returns an access token for auto-login."""
    result = get_auth_service().reset_password(db, body.email, body.token, body.new_password)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return _token_response(result)
