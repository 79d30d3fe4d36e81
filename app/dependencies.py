from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from jose import JWTError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select
from app.database import get_db
from app.models.user import User
from app.core.security import verify_token


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization.replace("Bearer ", "", 1)


def _load_user(db: Session, token: str) -> User:
    try:
        payload = verify_token(token)
        user_id = payload.get("id")
        if user_id is None:
            raise _credentials_exception()
    except JWTError:
        raise _credentials_exception()

    stmt = select(User).where(User.id == int(user_id)).options(selectinload(User.tenant))
    user = db.execute(stmt).scalar_one_or_none()

    if user is None:
        raise _credentials_exception()

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return user


def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User:
    """
    Validate the Bearer token from the Authorization header and return the user.

    The tenant relationship is preloaded so tenant_id and tenant status are
    available without another query.

    Raises:
        HTTPException 401: If the token is missing, invalid or the user is gone
        HTTPException 403: If the user is inactive
    """
    token = _bearer_token(request)
    if not token:
        raise _credentials_exception()
    return _load_user(db, token)


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Like get_current_user, but anonymous requests yield None."""
    token = _bearer_token(request)
    if not token:
        return None
    return _load_user(db, token)
