from decimal import Decimal
from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from cafeteria.core.config import settings
from cafeteria.db import session as db_session
from cafeteria.db.base import Base
from cafeteria.main import app
from cafeteria.models import MenuItem, Order
from cafeteria.services.user_service import create_user


def _prepare_db(tmp_path: Path, monkeypatch):
    engine = create_engine(f"sqlite:///{tmp_path / 'api.db'}", connect_args={"check_same_thread": False})
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    monkeypatch.setattr(settings, "seed_demo_data", False)
    monkeypatch.setattr(settings, "admin_email", "")
    return testing_session_local


def _seed(session_local) -> dict[str, int]:
    with session_local() as db:
        create_user(db, email="admin@campus.edu", password="admin123", name="Kitchen Admin", roles=("admin",))
        create_user(db, email="student@campus.edu", password="secret123", name="Asha")
        create_user(db, email="other@campus.edu", password="secret123", name="Ravi")
        items = [
            MenuItem(name="Masala Dosa", category="breakfast", price=Decimal("60.00"), estimated_time=12, available=True, is_special=True),
            MenuItem(name="Veg Thali", category="lunch", price=Decimal("50.00"), estimated_time=15, available=True, is_special=False),
            MenuItem(name="Cold Coffee", category="beverages", price=Decimal("30.00"), estimated_time=5, available=True, is_special=False),
        ]
        db.add_all(items)
        db.commit()
        return {item.name: item.id for item in items}


def _token(client: TestClient, email: str, password: str) -> dict[str, str]:
    res = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


def test_register_login_and_me(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)

    with TestClient(app) as client:
        created = client.post("/api/v1/auth/register", json={"email": "new@campus.edu", "password": "secret123", "name": "Neha"})
        duplicate = client.post("/api/v1/auth/register", json={"email": "new@campus.edu", "password": "secret123", "name": "Neha"})
        bad_login = client.post("/api/v1/auth/login", json={"email": "new@campus.edu", "password": "nope"})
        headers = _token(client, "new@campus.edu", "secret123")
        me = client.get("/api/v1/auth/me", headers=headers)
        anonymous_me = client.get("/api/v1/auth/me")

    assert created.status_code == 201
    assert created.json()["roles"] == ["customer"]
    assert duplicate.status_code == 400
    assert bad_login.status_code == 401
    assert me.json()["name"] == "Neha"
    assert me.json()["is_admin"] is False
    assert anonymous_me.status_code == 401


def test_menu_filters(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    _seed(session_local)

    with TestClient(app) as client:
        everything = client.get("/api/v1/menu")
        lunch = client.get("/api/v1/menu", params={"category": "lunch"})
        specials = client.get("/api/v1/menu", params={"special": "true"})
        unknown = client.get("/api/v1/menu", params={"category": "dinner"})
        categories = client.get("/api/v1/menu/categories")

    assert [item["name"] for item in everything.json()] == ["Cold Coffee", "Masala Dosa", "Veg Thali"]
    assert [item["name"] for item in lunch.json()] == ["Veg Thali"]
    assert [item["name"] for item in specials.json()] == ["Masala Dosa"]
    assert unknown.status_code == 400
    assert categories.json() == ["breakfast", "lunch", "snacks", "beverages"]


def test_checkout_and_active_orders(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed(session_local)

    with TestClient(app) as client:
        anonymous = client.post("/api/v1/orders", json={"items": [{"menu_item_id": ids["Veg Thali"], "quantity": 1}]})
        headers = _token(client, "student@campus.edu", "secret123")
        other_headers = _token(client, "other@campus.edu", "secret123")
        created = client.post(
            "/api/v1/orders",
            json={"items": [{"menu_item_id": ids["Veg Thali"], "quantity": 2}, {"menu_item_id": ids["Cold Coffee"], "quantity": 1}]},
            headers=headers,
        )
        empty = client.post("/api/v1/orders", json={"items": []}, headers=headers)
        client.post("/api/v1/orders", json={"items": [{"menu_item_id": ids["Masala Dosa"], "quantity": 1}]}, headers=other_headers)
        order_id = created.json()["id"]
        with session_local() as db:
            delivered = Order(user_id=db.get(Order, order_id).user_id, total_price=Decimal("10.00"), payment_status="paid", status="delivered", token_number=99)
            db.add(delivered)
            db.commit()
        active = client.get("/api/v1/orders/active", headers=headers)
        own = client.get(f"/api/v1/orders/{order_id}", headers=headers)
        foreign = client.get(f"/api/v1/orders/{order_id}", headers=other_headers)

    assert anonymous.status_code == 401
    assert created.status_code == 201
    assert created.headers["location"] == f"/track/{order_id}"
    body = created.json()
    assert Decimal(body["total_price"]) == Decimal("130.00")
    assert body["payment_status"] == "paid"
    assert body["status"] == "queued"
    assert body["next_statuses"] == ["preparing"]
    assert [(line["name"], line["quantity"]) for line in body["items"]] == [("Veg Thali", 2), ("Cold Coffee", 1)]
    assert empty.status_code == 204
    assert [order["id"] for order in active.json()] == [order_id]
    assert own.status_code == 200
    assert foreign.status_code == 404


def test_admin_api_enforces_role_and_workflow(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed(session_local)

    with TestClient(app) as client:
        customer = _token(client, "student@campus.edu", "secret123")
        admin = _token(client, "admin@campus.edu", "admin123")
        order_id = client.post(
            "/api/v1/orders",
            json={"items": [{"menu_item_id": ids["Veg Thali"], "quantity": 1}]},
            headers=customer,
        ).json()["id"]

        forbidden = client.post(f"/api/v1/admin/orders/{order_id}/status", json={"status": "preparing"}, headers=customer)
        skipped = client.post(f"/api/v1/admin/orders/{order_id}/status", json={"status": "ready"}, headers=admin)
        advanced = client.post(f"/api/v1/admin/orders/{order_id}/status", json={"status": "preparing"}, headers=admin)
        missing = client.post("/api/v1/admin/orders/999/status", json={"status": "preparing"}, headers=admin)
        listed = client.get("/api/v1/admin/orders", params={"status": "preparing"}, headers=admin)
        customer_list = client.get("/api/v1/admin/orders", headers=customer)

    assert forbidden.status_code == 403
    assert skipped.status_code == 409
    assert advanced.status_code == 200
    assert advanced.json()["status"] == "preparing"
    assert advanced.json()["next_statuses"] == ["ready"]
    assert missing.status_code == 404
    assert [(order["id"], order["customer_name"]) for order in listed.json()] == [(order_id, "Asha")]
    assert customer_list.status_code == 403


def test_admin_api_menu_upkeep(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed(session_local)

    with TestClient(app) as client:
        admin = _token(client, "admin@campus.edu", "admin123")
        created = client.post(
            "/api/v1/admin/menu",
            json={"name": "Lemon Soda", "category": "beverages", "price": "25.00", "estimated_time": 2},
            headers=admin,
        )
        hidden = client.post(f"/api/v1/admin/menu/{ids['Veg Thali']}/toggle-available", headers=admin)
        menu = client.get("/api/v1/menu")

    assert created.status_code == 201
    assert created.json()["name"] == "Lemon Soda"
    assert hidden.json()["available"] is False
    assert "Veg Thali" not in [item["name"] for item in menu.json()]
    assert "Lemon Soda" in [item["name"] for item in menu.json()]


def test_checkout_rejects_quantities_over_the_line_cap(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed(session_local)

    with TestClient(app) as client:
        headers = _token(client, "student@campus.edu", "secret123")
        huge = client.post("/api/v1/orders", json={"items": [{"menu_item_id": ids["Veg Thali"], "quantity": 10**20}]}, headers=headers)
        split = client.post(
            "/api/v1/orders",
            json={"items": [{"menu_item_id": ids["Veg Thali"], "quantity": 20}, {"menu_item_id": ids["Veg Thali"], "quantity": 1}]},
            headers=headers,
        )
        customer_menu_add = client.post(
            "/api/v1/admin/menu",
            json={"name": "Lemon Soda", "category": "beverages", "price": "25.00"},
            headers=headers,
        )

    assert huge.status_code == 422
    assert split.status_code == 400
    assert customer_menu_add.status_code == 403
    with session_local() as db:
        assert db.scalars(select(Order)).all() == []
