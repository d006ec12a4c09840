from typing import Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from cinema.core.config import Settings, settings
from cinema.core.security import decode_token
from cinema.models.user import User
from cinema.registries.users import UserRegistry
from cinema.schemas.user import TokenPayload
from cinema.services.booking_engine import BookingEngine

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_booking_engine(request: Request) -> BookingEngine:
    return request.app.state.booking_engine


def get_token_payload(
    token: str = Depends(oauth2_scheme),
    app_settings: Settings = Depends(get_settings),
) -> TokenPayload:
    payload = decode_token(token, secret_key=app_settings.SECRET_KEY)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


def get_current_user(
    payload: TokenPayload = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> User:
    try:
        user_id = int(payload.sub)
    except (TypeError, ValueError):
        user_id = None
    user = UserRegistry(db).get(user_id) if user_id is not None else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return user


def get_current_admin_user(
    payload: TokenPayload = Depends(get_token_payload),
    current_user: User = Depends(get_current_user),
) -> User:
    # Both the role claim and the stored role must say admin
    if payload.role != "admin" or current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


def ensure_owner_or_admin(current_user: User, user_id: int) -> None:
    if current_user.role != "admin" and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access another user's bookings",
        )
