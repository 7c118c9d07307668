"""FastAPI entrypoint for the campus cafeteria ordering app."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from urllib.parse import parse_qs, urlencode

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from cafeteria.api.v1.api import api_router
from cafeteria.auth import get_access_context, login_redirect, login_session, logout_session
from cafeteria.core.config import settings
from cafeteria.db import session as db_session
from cafeteria.db.base import Base
from cafeteria.db.seed import ensure_seed_data
from cafeteria.db.session import get_db
from cafeteria.models.menu import MENU_CATEGORIES
from cafeteria.services.access import AccessContext
from cafeteria.services.audit_service import list_order_history
from cafeteria.services.cart import MAX_LINE_QUANTITY, CartStore
from cafeteria.services.checkout_service import CheckoutError, submit_order
from cafeteria.services.menu_service import (
    MenuItemNotFoundError,
    create_menu_item,
    filter_specials,
    get_menu_item,
    group_by_category,
    list_all,
    list_available,
    toggle_available,
    toggle_special,
)
from cafeteria.services.order_service import (
    InvalidTransitionError,
    OrderNotFoundError,
    advance_order,
    count_by_status,
    get_order_for_user,
    list_active_orders,
    list_orders,
)
from cafeteria.services.order_status import (
    ORDER_STATUSES,
    TRANSITION_LABELS,
    available_transitions,
    status_step,
)
from cafeteria.services.user_service import RegistrationError, authenticate_user, create_user

BASE_DIR = Path(__file__).resolve().parent.parent
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    same_site="lax",
    https_only=False,
    max_age=60 * 60 * 24,
)
app.include_router(api_router, prefix="/api/v1")
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def format_money(value: Decimal | int | float | str) -> str:
    return f"{settings.currency_symbol}{Decimal(value):.2f}"


templates.env.globals["money"] = format_money
templates.env.globals["transition_labels"] = TRANSITION_LABELS
templates.env.globals["available_transitions"] = available_transitions


def render_template(request: Request, name: str, context: AccessContext, payload: dict | None = None):
    """Render a template with the request, caller and cart badge injected."""
    values = {
        "request": request,
        "app_name": settings.app_name,
        "access": context,
        "cart_count": CartStore.from_session(request.session).item_count,
        "message": request.query_params.get("message"),
        "error": request.query_params.get("error"),
    }
    if payload:
        values.update(payload)
    return templates.TemplateResponse(request, name, values)


def redirect_to(url: str, *, message: str | None = None, error: str | None = None) -> RedirectResponse:
    """Redirect with a one-shot notification carried in the query string."""
    params = {key: value for key, value in (("message", message), ("error", error)) if value}
    if params:
        url = f"{url}{'&' if '?' in url else '?'}{urlencode(params)}"
    return RedirectResponse(url=url, status_code=303)


async def _form_data(request: Request) -> dict[str, str]:
    body = (await request.body()).decode()
    parsed = parse_qs(body, keep_blank_values=True)
    return {key: values[-1] if values else "" for key, values in parsed.items()}


def _safe_next(value: str | None, default: str = "/") -> str:
    if value and value.startswith("/") and not value.startswith("//"):
        return value
    return default


def _require_admin_page(context: AccessContext) -> RedirectResponse | None:
    if not context.is_authenticated:
        return login_redirect()
    if not context.is_admin:
        logger.info("[AUTH] Non-admin user_id=%s denied admin view", context.user_id)
        return redirect_to("/", error="Access denied. Admin only.")
    return None


@app.on_event("startup")
def startup() -> None:
    if settings.session_secret == "dev-session-secret-change-me":
        logger.warning("SESSION_SECRET not set; using development fallback secret.")
    Base.metadata.create_all(bind=db_session.engine)
    with db_session.SessionLocal() as session:
        try:
            ensure_seed_data(session)
        except SQLAlchemyError:
            logger.exception("[BOOTSTRAP] Seed failed; continuing startup.")


@app.get("/", response_class=HTMLResponse)
def menu_page(
    request: Request,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(get_access_context),
):
    error = None
    try:
        items = list_available(db)
    except SQLAlchemyError:
        logger.exception("[MENU] Failed to load menu")
        db.rollback()
        items = []
        error = "Failed to load menu"

    active_orders = []
    if context.is_authenticated:
        try:
            active_orders = list_active_orders(db, context.user_id)
        except SQLAlchemyError:
            logger.warning("[MENU] Failed to load active orders for user_id=%s", context.user_id, exc_info=True)
            db.rollback()

    payload = {
        "categories": MENU_CATEGORIES,
        "sections": group_by_category(items),
        "specials": filter_specials(items),
        "active_orders": active_orders,
    }
    if error:
        payload["error"] = error
    return render_template(request, "menu.html", context, payload)


@app.get("/login", response_class=HTMLResponse)
def login_page(request: Request, context: AccessContext = Depends(get_access_context)):
    if context.is_authenticated:
        return RedirectResponse(url="/", status_code=303)
    return render_template(request, "login.html", context, {"next": _safe_next(request.query_params.get("next"))})


@app.post("/login", response_class=RedirectResponse)
async def login_submit(request: Request, db: Session = Depends(get_db)):
    form = await _form_data(request)
    email = form.get("email", "")
    next_url = _safe_next(form.get("next"))
    user = authenticate_user(db, email, form.get("password", ""))
    if user is None:
        logger.info("[AUTH] Rejected login for %s", email)
        return redirect_to(f"/login?{urlencode({'next': next_url})}", error="Invalid email or password")

    login_session(request, user)
    return redirect_to(next_url, message="Signed in successfully")


@app.get("/register", response_class=HTMLResponse)
def register_page(request: Request, context: AccessContext = Depends(get_access_context)):
    if context.is_authenticated:
        return RedirectResponse(url="/", status_code=303)
    return render_template(request, "register.html", context)


@app.post("/register", response_class=RedirectResponse)
async def register_submit(request: Request, db: Session = Depends(get_db)):
    form = await _form_data(request)
    password = form.get("password", "")
    if password != form.get("confirm_password", password):
        return redirect_to("/register", error="Passwords do not match.")
    try:
        user = create_user(db, email=form.get("email", ""), password=password, name=form.get("name", ""))
    except RegistrationError as exc:
        return redirect_to("/register", error=str(exc))

    login_session(request, user)
    return redirect_to("/", message="Account created")


@app.post("/logout", response_class=RedirectResponse)
def logout(request: Request):
    logout_session(request)
    return redirect_to("/", message="Signed out successfully")


@app.get("/logout", response_class=RedirectResponse)
def logout_get(request: Request):
    return logout(request)


@app.get("/cart", response_class=HTMLResponse)
def cart_page(request: Request, context: AccessContext = Depends(get_access_context)):
    cart = CartStore.from_session(request.session)
    return render_template(request, "cart.html", context, {"cart": cart})


@app.post("/cart/add", response_class=RedirectResponse)
async def cart_add(request: Request, db: Session = Depends(get_db)):
    form = await _form_data(request)
    next_url = _safe_next(form.get("next"))
    try:
        item = get_menu_item(db, int(form.get("menu_item_id", "")))
    except (ValueError, MenuItemNotFoundError):
        return redirect_to(next_url, error="Menu item not found")
    if not item.available:
        return redirect_to(next_url, error=f"{item.name} is currently unavailable")

    cart = CartStore.from_session(request.session)
    cart.add(item)
    cart.save(request.session)
    return redirect_to(next_url, message=f"{item.name} added to cart")


@app.post("/cart/{item_id}/quantity", response_class=RedirectResponse)
async def cart_update_quantity(request: Request, item_id: int):
    form = await _form_data(request)
    try:
        quantity = int(form.get("quantity", ""))
    except ValueError:
        return redirect_to("/cart", error="Quantity must be a whole number")
    if quantity > MAX_LINE_QUANTITY:
        return redirect_to("/cart", error=f"You can order at most {MAX_LINE_QUANTITY} of one item")

    cart = CartStore.from_session(request.session)
    cart.update_quantity(item_id, quantity)
    cart.save(request.session)
    return redirect_to("/cart")


@app.post("/cart/{item_id}/remove", response_class=RedirectResponse)
def cart_remove(request: Request, item_id: int):
    cart = CartStore.from_session(request.session)
    cart.remove_item(item_id)
    cart.save(request.session)
    return redirect_to("/cart")


@app.post("/cart/clear", response_class=RedirectResponse)
def cart_clear(request: Request):
    cart = CartStore.from_session(request.session)
    cart.clear()
    cart.save(request.session)
    return redirect_to("/cart")


@app.post("/cart/checkout", response_class=RedirectResponse)
def cart_checkout(
    request: Request,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(get_access_context),
):
    if not context.is_authenticated:
        return redirect_to("/login?next=/cart", error="Please sign in to place your order")

    cart = CartStore.from_session(request.session)
    try:
        order = submit_order(db, context, cart)
    except CheckoutError as exc:
        return redirect_to("/cart", error=str(exc) or "Failed to place order")
    if order is None:
        return redirect_to("/cart")

    cart.clear()
    cart.save(request.session)
    return redirect_to(f"/track/{order.id}", message="Order placed successfully!")


@app.get("/track/{order_id}", response_class=HTMLResponse)
def track_order_page(
    request: Request,
    order_id: int,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(get_access_context),
):
    if not context.is_authenticated:
        return login_redirect()
    try:
        order = get_order_for_user(db, order_id, context)
    except OrderNotFoundError as exc:
        return redirect_to("/", error=str(exc))
    payload = {"order": order, "statuses": ORDER_STATUSES, "current_step": status_step(order.status)}
    if context.is_admin:
        payload["history"] = list_order_history(db, order.id)
    return render_template(request, "track.html", context, payload)


@app.get("/admin", response_class=HTMLResponse)
def admin_dashboard(
    request: Request,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(get_access_context),
):
    denied = _require_admin_page(context)
    if denied is not None:
        return denied

    selected = request.query_params.get("status") or "all"
    if selected != "all" and selected not in ORDER_STATUSES:
        selected = "all"
    payload = {"selected": selected, "statuses": ORDER_STATUSES}
    try:
        payload["orders"] = list_orders(db, None if selected == "all" else selected)
        payload["counts"] = count_by_status(db)
    except SQLAlchemyError:
        logger.exception("[ADMIN] Failed to load orders")
        db.rollback()
        payload.update(orders=[], counts={status: 0 for status in ORDER_STATUSES}, error="Failed to load orders")
    return render_template(request, "admin.html", context, payload)


@app.post("/admin/orders/{order_id}/status", response_class=RedirectResponse)
async def admin_order_status(
    request: Request,
    order_id: int,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(get_access_context),
):
    form = await _form_data(request)
    denied = _require_admin_page(context)
    if denied is not None:
        return denied

    new_status = form.get("new_status", "")
    selected = form.get("selected_status", "all")
    back = "/admin" if selected in ("", "all") else f"/admin?status={selected}"
    try:
        advance_order(db, order_id=order_id, new_status=new_status, context=context)
    except OrderNotFoundError as exc:
        return redirect_to(back, error=str(exc))
    except InvalidTransitionError as exc:
        return redirect_to(back, error=str(exc))
    except SQLAlchemyError:
        logger.exception("[STATUS] Update failed for order_id=%s", order_id)
        db.rollback()
        return redirect_to(back, error="Failed to update order status")
    return redirect_to(back, message=f"Order status updated to {new_status}")


@app.get("/admin/menu", response_class=HTMLResponse)
def admin_menu_page(
    request: Request,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(get_access_context),
):
    denied = _require_admin_page(context)
    if denied is not None:
        return denied
    return render_template(request, "admin_menu.html", context, {"items": list_all(db), "categories": MENU_CATEGORIES})


@app.post("/admin/menu", response_class=RedirectResponse)
async def admin_menu_create(
    request: Request,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(get_access_context),
):
    form = await _form_data(request)
    denied = _require_admin_page(context)
    if denied is not None:
        return denied
    try:
        price = Decimal(form.get("price", "").replace(",", "."))
        estimated_time = int(form.get("estimated_time") or 10)
    except (InvalidOperation, ValueError):
        return redirect_to("/admin/menu", error="Price and estimated time must be numeric")
    try:
        item = create_menu_item(
            db,
            context,
            name=form.get("name", ""),
            category=form.get("category", ""),
            price=price,
            estimated_time=estimated_time,
            available="available" in form,
            is_special="is_special" in form,
        )
    except ValueError as exc:
        return redirect_to("/admin/menu", error=str(exc))
    return redirect_to("/admin/menu", message=f"{item.name} added")


@app.post("/admin/menu/{item_id}/toggle-available", response_class=RedirectResponse)
def admin_menu_toggle_available(
    item_id: int,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(get_access_context),
):
    denied = _require_admin_page(context)
    if denied is not None:
        return denied
    try:
        toggle_available(db, context, item_id)
    except MenuItemNotFoundError as exc:
        return redirect_to("/admin/menu", error=str(exc))
    return redirect_to("/admin/menu")


@app.post("/admin/menu/{item_id}/toggle-special", response_class=RedirectResponse)
def admin_menu_toggle_special(
    item_id: int,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(get_access_context),
):
    denied = _require_admin_page(context)
    if denied is not None:
        return denied
    try:
        toggle_special(db, context, item_id)
    except MenuItemNotFoundError as exc:
        return redirect_to("/admin/menu", error=str(exc))
    return redirect_to("/admin/menu")
