from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from cinema.core.config import Settings
from cinema.core.security import create_access_token, get_password_hash, verify_password
from cinema.api.deps import get_db, get_settings
from cinema.models.user import User
from cinema.registries.users import UserRegistry
from cinema.schemas.user import UserCreate, AdminCreate, Token, User as UserSchema

router = APIRouter(prefix="/auth", tags=["auth"])


def _build_token_response(user: User, app_settings: Settings) -> Token:
    return Token(
        access_token=create_access_token(
            subject=str(user.id),
            role=user.role,
            expires_delta=timedelta(minutes=app_settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            secret_key=app_settings.SECRET_KEY,
        ),
        token_type="bearer",
        user=UserSchema.model_validate(user),
    )


def _register(body: UserCreate, role: str, db: Session, app_settings: Settings) -> Token:
    users = UserRegistry(db)
    if users.get_by_email(body.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )
    user = users.create(
        email=body.email,
        password_hash=get_password_hash(body.password),
        full_name=body.full_name,
        role=role,
    )
    db.commit()
    db.refresh(user)
    return _build_token_response(user, app_settings)


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(
    body: UserCreate,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    return _register(body, "user", db, app_settings)


@router.post("/admin/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def admin_register(
    body: AdminCreate,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    if body.admin_secret != app_settings.ADMIN_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin secret",
        )
    return _register(body, "admin", db, app_settings)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    user = UserRegistry(db).get_by_email(form_data.username)
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return _build_token_response(user, app_settings)
