"""Session-based authentication helpers for server-rendered routes."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from cafeteria.db.session import get_db
from cafeteria.models.user import User
from cafeteria.services.access import AccessContext, build_access_context
from cafeteria.services.cart import CART_SESSION_KEY

SESSION_USER_KEY = "user_id"
LOGIN_URL = "/login"


def _session_user_id(request: Request) -> int | None:
    raw = request.session.get(SESSION_USER_KEY)
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def get_access_context(request: Request, db: Session = Depends(get_db)) -> AccessContext:
    """Build the caller's access context for this request only."""
    user_id = _session_user_id(request)
    context = build_access_context(db, user_id)
    if user_id is not None and not context.is_authenticated:
        request.session.pop(SESSION_USER_KEY, None)
    return context


def login_session(request: Request, user: User) -> None:
    """Start a fresh session for ``user`` while keeping the cart."""
    cart: list[dict[str, Any]] = request.session.get(CART_SESSION_KEY) or []
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    if cart:
        request.session[CART_SESSION_KEY] = cart


def logout_session(request: Request) -> None:
    request.session.clear()


def login_redirect() -> RedirectResponse:
    return RedirectResponse(url=LOGIN_URL, status_code=303)
