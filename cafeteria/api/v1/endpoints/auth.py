"""Authentication endpoints (API JWT)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cafeteria.core.security import create_access_token, require_api_user
from cafeteria.db.session import get_db
from cafeteria.schemas.auth import AuthUserResponse, LoginRequest, RegisterRequest, TokenResponse
from cafeteria.services.access import AccessContext, build_access_context
from cafeteria.services.user_service import RegistrationError, authenticate_user, create_user

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


def _serialize_context(context: AccessContext) -> AuthUserResponse:
    return AuthUserResponse(
        id=context.user.id,
        email=context.user.email,
        name=context.display_name,
        roles=sorted(context.roles),
        is_admin=context.is_admin,
    )


@router.post("/register", response_model=AuthUserResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthUserResponse:
    try:
        user = create_user(db, email=payload.email, password=payload.password, name=payload.name)
    except RegistrationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _serialize_context(build_access_context(db, user.id))


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    user = authenticate_user(db, payload.email, payload.password)
    if user is None:
        logger.info("[AUTH] Rejected API login for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    return TokenResponse(access_token=create_access_token(data={"sub": str(user.id)}))


@router.get("/me", response_model=AuthUserResponse)
def me(context: AccessContext = Depends(require_api_user)) -> AuthUserResponse:
    return _serialize_context(context)
