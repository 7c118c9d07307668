from decimal import Decimal
from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from cafeteria.core.config import settings
from cafeteria.db import session as db_session
from cafeteria.db.base import Base
from cafeteria.main import app
from cafeteria.models import MenuItem, Order
from cafeteria.services.user_service import create_user


def _prepare_db(tmp_path: Path, monkeypatch):
    engine = create_engine(f"sqlite:///{tmp_path / 'cart.db'}", connect_args={"check_same_thread": False})
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    monkeypatch.setattr(settings, "seed_demo_data", False)
    monkeypatch.setattr(settings, "admin_email", "")
    return testing_session_local


def _seed(session_local) -> tuple[int, int]:
    with session_local() as db:
        create_user(db, email="student@campus.edu", password="secret123", name="Asha")
        thali = MenuItem(name="Veg Thali", category="lunch", price=Decimal("50.00"), estimated_time=15, available=True, is_special=True)
        chai = MenuItem(name="Masala Chai", category="beverages", price=Decimal("30.00"), estimated_time=3, available=True, is_special=False)
        db.add_all([thali, chai])
        db.commit()
        return thali.id, chai.id


def test_menu_page_lists_available_items_and_specials(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    _seed(session_local)
    with session_local() as db:
        db.add(MenuItem(name="Hidden Pulao", category="lunch", price=Decimal("80.00"), estimated_time=10, available=False, is_special=False))
        db.commit()

    with TestClient(app) as client:
        res = client.get("/")

    assert res.status_code == 200
    assert "Veg Thali" in res.text
    assert "Masala Chai" in res.text
    assert "Hidden Pulao" not in res.text


def test_add_update_and_remove_cart_lines(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    thali_id, chai_id = _seed(session_local)

    with TestClient(app) as client:
        add_res = client.post("/cart/add", data={"menu_item_id": str(thali_id), "next": "/"}, follow_redirects=False)
        client.post("/cart/add", data={"menu_item_id": str(thali_id)})
        client.post("/cart/add", data={"menu_item_id": str(chai_id)})
        full_cart = client.get("/cart")
        client.post(f"/cart/{chai_id}/quantity", data={"quantity": "0"})
        reduced_cart = client.get("/cart")
        client.post(f"/cart/{thali_id}/remove")
        empty_cart = client.get("/cart")

    assert add_res.status_code == 303
    assert add_res.headers["location"].startswith("/?message=")
    assert "Veg Thali" in full_cart.text
    assert "₹130.00" in full_cart.text
    assert "Masala Chai" not in reduced_cart.text
    assert "₹100.00" in reduced_cart.text
    assert "Your cart is empty" in empty_cart.text


def test_unavailable_item_cannot_be_added(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    thali_id, _ = _seed(session_local)
    with session_local() as db:
        db.get(MenuItem, thali_id).available = False
        db.commit()

    with TestClient(app) as client:
        res = client.post("/cart/add", data={"menu_item_id": str(thali_id)}, follow_redirects=False)
        cart = client.get("/cart")

    assert res.status_code == 303
    assert "error=" in res.headers["location"]
    assert "Your cart is empty" in cart.text


def test_anonymous_checkout_redirects_to_login_without_writing(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    thali_id, _ = _seed(session_local)

    with TestClient(app) as client:
        client.post("/cart/add", data={"menu_item_id": str(thali_id)})
        res = client.post("/cart/checkout", follow_redirects=False)
        cart = client.get("/cart")

    assert res.status_code == 303
    assert res.headers["location"].startswith("/login?next=/cart")
    assert "Veg Thali" in cart.text
    with session_local() as db:
        assert db.scalar(select(func.count()).select_from(Order)) == 0


def test_checkout_places_order_and_clears_cart(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    thali_id, chai_id = _seed(session_local)

    with TestClient(app) as client:
        client.post("/cart/add", data={"menu_item_id": str(thali_id)})
        client.post("/login", data={"email": "student@campus.edu", "password": "secret123", "next": "/cart"})
        client.post(f"/cart/{thali_id}/quantity", data={"quantity": "2"})
        client.post("/cart/add", data={"menu_item_id": str(chai_id)})
        res = client.post("/cart/checkout", follow_redirects=False)
        location = res.headers["location"]
        track = client.get(location)
        cart = client.get("/cart")
        menu = client.get("/")

    with session_local() as db:
        order = db.scalars(select(Order)).one()
        assert order.total_price == Decimal("130.00")
        assert order.payment_status == "paid"
        order_id = order.id

    assert res.status_code == 303
    assert location.startswith(f"/track/{order_id}?message=")
    assert track.status_code == 200
    assert "Token #1" in track.text
    assert "QUEUED" in track.text
    assert "Your cart is empty" in cart.text
    assert f"/track/{order_id}" in menu.text


def test_track_page_is_private_to_owner(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    thali_id, _ = _seed(session_local)
    with session_local() as db:
        create_user(db, email="other@campus.edu", password="secret123", name="Other")

    with TestClient(app) as client:
        client.post("/login", data={"email": "student@campus.edu", "password": "secret123"})
        client.post("/cart/add", data={"menu_item_id": str(thali_id)})
        location = client.post("/cart/checkout", follow_redirects=False).headers["location"]
        track_path = location.split("?")[0]
        client.post("/logout")
        anonymous = client.get(track_path, follow_redirects=False)
        client.post("/login", data={"email": "other@campus.edu", "password": "secret123"})
        stranger = client.get(track_path, follow_redirects=False)

    assert anonymous.status_code == 303
    assert anonymous.headers["location"] == "/login"
    assert stranger.status_code == 303
    assert stranger.headers["location"].startswith("/?error=")


def test_oversized_quantity_is_rejected_and_checkout_still_works(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    thali_id, _ = _seed(session_local)

    with TestClient(app) as client:
        client.post("/login", data={"email": "student@campus.edu", "password": "secret123"})
        client.post("/cart/add", data={"menu_item_id": str(thali_id)})
        rejected = client.post(f"/cart/{thali_id}/quantity", data={"quantity": str(10**20)}, follow_redirects=False)
        res = client.post("/cart/checkout", follow_redirects=False)

    assert rejected.status_code == 303
    assert rejected.headers["location"].startswith("/cart?error=")
    assert res.status_code == 303
    assert res.headers["location"].startswith("/track/")
    with session_local() as db:
        order = db.scalars(select(Order)).one()
        assert order.items[0].quantity == 1
        assert order.total_price == Decimal("50.00")
