"""Authentication dependencies for FastAPI routes."""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import TokenKind, User
from app.services.jwt import get_jwt_service
from app.services.users import get_user_service


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """Resolve the user behind a Bearer token. Raises 401 if invalid or revoked."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = get_jwt_service().decode_token(auth_header[7:])
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.isdigit():
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = get_user_service().find(db, int(sub))
    # the session id stops verifying once the user logs out (forget)
    if not user or not user.authenticated(TokenKind.REMEMBER, payload.get("sid", "")):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return user
