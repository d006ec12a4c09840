from decimal import Decimal

from cinema.core.config import settings
from cinema.registries import SeatRegistry

API = settings.API_PREFIX


def _book(client, headers, user_id, showtime_id, seat_label="B2", price=12.5):
    return client.post(
        f"{API}/bookings",
        json={"user_id": user_id, "showtime_id": showtime_id, "seat_label": seat_label, "price": price},
        headers=headers,
    )


def test_root(client):
    assert client.get("/").json() == {"Hello": "Cinema"}


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------

def test_book_then_duplicate_then_cancel(client, catalog, auth_header):
    alice = auth_header(catalog.alice)
    bob = auth_header(catalog.bob)

    res = _book(client, alice, catalog.alice, catalog.showtime)
    assert res.status_code == 200
    body = res.json()
    assert body["seat_label"] == "B2"
    assert body["user_id"] == catalog.alice
    assert Decimal(body["price"]) == Decimal("12.5")

    res = _book(client, bob, catalog.bob, catalog.showtime)
    assert res.status_code == 409
    assert res.json()["error"] == "seat_already_booked"

    res = client.delete(f"{API}/bookings/{body['id']}", headers=alice)
    assert res.status_code == 200
    assert res.json() == {"id": body["id"], "deleted": True}

    res = client.delete(f"{API}/bookings/{body['id']}", headers=alice)
    assert res.status_code == 404
    assert res.json()["error"] == "booking_not_found"

    assert _book(client, bob, catalog.bob, catalog.showtime).status_code == 200


def test_book_unknown_seat_and_showtime(client, catalog, auth_header):
    alice = auth_header(catalog.alice)

    res = _book(client, alice, catalog.alice, catalog.showtime, seat_label="Q99")
    assert res.status_code == 404
    assert res.json()["error"] == "seat_not_found"

    res = _book(client, alice, catalog.alice, 999)
    assert res.status_code == 404
    assert res.json()["error"] == "showtime_not_found"


def test_get_booking(client, catalog, auth_header):
    alice = auth_header(catalog.alice)
    booking_id = _book(client, alice, catalog.alice, catalog.showtime).json()["id"]

    res = client.get(f"{API}/bookings/{booking_id}", headers=alice)
    assert res.status_code == 200
    assert res.json()["seat_label"] == "B2"

    assert client.get(f"{API}/bookings/999", headers=alice).status_code == 404


def test_bookings_of_other_users_are_forbidden(client, catalog, auth_header):
    alice = auth_header(catalog.alice)
    bob = auth_header(catalog.bob)
    booking_id = _book(client, alice, catalog.alice, catalog.showtime).json()["id"]

    assert client.get(f"{API}/bookings/{booking_id}", headers=bob).status_code == 403
    assert client.delete(f"{API}/bookings/{booking_id}", headers=bob).status_code == 403
    assert client.get(f"{API}/bookings/user/{catalog.alice}", headers=bob).status_code == 403
    assert _book(client, bob, catalog.alice, catalog.showtime, seat_label="A1").status_code == 403

    # Admins may act on anyone's bookings
    admin = auth_header(catalog.admin, role="admin")
    assert client.get(f"{API}/bookings/{booking_id}", headers=admin).status_code == 200


def test_bookings_require_a_token(client, catalog):
    res = client.post(
        f"{API}/bookings",
        json={"user_id": catalog.alice, "showtime_id": catalog.showtime, "seat_label": "B2", "price": 1},
    )
    assert res.status_code == 401

    res = client.get(f"{API}/bookings/1", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 401


def test_list_user_bookings(client, catalog, auth_header):
    alice = auth_header(catalog.alice)
    _book(client, alice, catalog.alice, catalog.showtime, seat_label="A1")
    _book(client, alice, catalog.alice, catalog.other_showtime, seat_label="A1")

    res = client.get(f"{API}/bookings/user/{catalog.alice}", headers=alice)
    assert res.status_code == 200
    assert [(b["showtime_id"], b["seat_label"]) for b in res.json()] == [
        (catalog.showtime, "A1"),
        (catalog.other_showtime, "A1"),
    ]

    admin = auth_header(catalog.admin, role="admin")
    res = client.get(f"{API}/bookings/user/999", headers=admin)
    assert res.status_code == 404
    assert res.json()["error"] == "user_not_found"


# ---------------------------------------------------------------------------
# Seats
# ---------------------------------------------------------------------------

def test_available_seats_per_showtime(client, catalog, auth_header):
    alice = auth_header(catalog.alice)
    _book(client, alice, catalog.alice, catalog.showtime, seat_label="A1")

    res = client.get(f"{API}/showtimes/{catalog.showtime}/seats/available")
    assert res.status_code == 200
    labels = [s["label"] for s in res.json()]
    assert "A1" not in labels
    assert len(labels) == 11

    res = client.get(f"{API}/showtimes/{catalog.other_showtime}/seats/available")
    assert len(res.json()) == 12

    assert client.get(f"{API}/showtimes/999/seats/available").status_code == 404


def test_hall_seat_listings(client, catalog):
    res = client.get(f"{API}/halls/{catalog.hall}/seats")
    assert res.status_code == 200
    assert [s["label"] for s in res.json()][-2:] == ["B1", "B2"]

    res = client.get(f"{API}/seats/available/{catalog.hall}")
    assert len(res.json()) == 12

    res = client.get(f"{API}/halls/999/seats")
    assert res.status_code == 404
    assert res.json()["error"] == "hall_not_found"


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

def test_admin_routes_reject_regular_users(client, catalog, auth_header):
    alice = auth_header(catalog.alice)
    assert client.get(f"{API}/admin/bookings", headers=alice).status_code == 403
    assert client.post(f"{API}/admin/halls", json={"name": "X", "total_seats": 1}, headers=alice).status_code == 403

    # A forged role claim is not enough
    forged = auth_header(catalog.alice, role="admin")
    assert client.get(f"{API}/admin/bookings", headers=forged).status_code == 403


def test_admin_lists_and_amends_bookings(client, catalog, auth_header):
    alice = auth_header(catalog.alice)
    admin = auth_header(catalog.admin, role="admin")
    booking_id = _book(client, alice, catalog.alice, catalog.showtime, seat_label="A1").json()["id"]
    _book(client, auth_header(catalog.bob), catalog.bob, catalog.showtime, seat_label="A2")

    res = client.get(f"{API}/admin/bookings", headers=admin)
    assert res.status_code == 200
    assert len(res.json()) == 2

    res = client.patch(f"{API}/admin/bookings/{booking_id}", json={"price": "9.00", "seat_label": "A3"}, headers=admin)
    assert res.status_code == 200
    assert res.json()["seat_label"] == "A3"
    assert Decimal(res.json()["price"]) == Decimal("9.00")

    res = client.patch(f"{API}/admin/bookings/{booking_id}", json={"seat_label": "A2"}, headers=admin)
    assert res.status_code == 409
    assert res.json()["error"] == "seat_already_booked"

    assert client.patch(f"{API}/admin/bookings/999", json={"price": "1"}, headers=admin).status_code == 404


def test_admin_creates_and_enlarges_hall(client, catalog, auth_header):
    admin = auth_header(catalog.admin, role="admin")

    res = client.post(f"{API}/admin/halls", json={"name": "Studio", "total_seats": 12}, headers=admin)
    assert res.status_code == 201
    hall = res.json()
    assert hall["total_seats"] == 12

    labels = [s["label"] for s in client.get(f"{API}/halls/{hall['id']}/seats").json()]
    assert labels[:2] == ["A1", "A2"]
    assert labels[-2:] == ["B1", "B2"]

    res = client.patch(f"{API}/admin/halls/{hall['id']}", json={"total_seats": 15}, headers=admin)
    assert res.status_code == 200
    labels = [s["label"] for s in client.get(f"{API}/halls/{hall['id']}/seats").json()]
    assert labels[-3:] == ["B3", "B4", "B5"]

    assert client.patch(f"{API}/admin/halls/999", json={"name": "x"}, headers=admin).status_code == 404


def test_admin_takes_seat_out_of_service(client, catalog, auth_header, db):
    admin = auth_header(catalog.admin, role="admin")
    a1 = SeatRegistry(db).find_by_label_in_hall(catalog.hall, "A1")

    res = client.put(f"{API}/admin/seats/{a1.id}/availability", json={"available": False}, headers=admin)
    assert res.status_code == 200
    assert res.json()["is_available"] is False

    res = _book(client, auth_header(catalog.alice), catalog.alice, catalog.showtime, seat_label="A1")
    assert res.status_code == 409
    assert res.json()["error"] == "seat_unavailable"

    res = client.put(f"{API}/admin/seats/999/availability", json={"available": True}, headers=admin)
    assert res.status_code == 404


def test_admin_reconcile(client, catalog, auth_header, db):
    admin = auth_header(catalog.admin, role="admin")
    seats = SeatRegistry(db)
    a1 = seats.find_by_label_in_hall(catalog.hall, "A1")
    seats.set_showtime_availability(catalog.showtime, a1.id, False)
    db.commit()

    res = client.post(f"{API}/admin/showtimes/{catalog.showtime}/availability/reconcile", headers=admin)
    assert res.status_code == 200
    assert res.json() == {"showtime_id": catalog.showtime, "fixed": 1}

    res = client.post(f"{API}/admin/showtimes/999/availability/reconcile", headers=admin)
    assert res.status_code == 404


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

def test_register_login_and_book(client, catalog):
    res = client.post(
        f"{API}/auth/register",
        json={"email": "carol@example.com", "full_name": "Carol", "password": "hunter22"},
    )
    assert res.status_code == 201
    carol = res.json()["user"]
    assert carol["role"] == "user"

    res = client.post(
        f"{API}/auth/register",
        json={"email": "carol@example.com", "full_name": "Carol", "password": "hunter22"},
    )
    assert res.status_code == 400

    res = client.post(f"{API}/auth/login", data={"username": "carol@example.com", "password": "wrong"})
    assert res.status_code == 401

    res = client.post(f"{API}/auth/login", data={"username": "carol@example.com", "password": "hunter22"})
    assert res.status_code == 200
    token = res.json()["access_token"]

    res = _book(client, {"Authorization": f"Bearer {token}"}, carol["id"], catalog.showtime, seat_label="A4")
    assert res.status_code == 200


def test_admin_register_needs_secret(client):
    body = {"email": "boss@example.com", "full_name": "Boss", "password": "pw"}

    res = client.post(f"{API}/auth/admin/register", json={**body, "admin_secret": "nope"})
    assert res.status_code == 403

    res = client.post(f"{API}/auth/admin/register", json={**body, "admin_secret": settings.ADMIN_SECRET_KEY})
    assert res.status_code == 201
    assert res.json()["user"]["role"] == "admin"


def test_app_uses_its_own_secrets(db_engine):
    from datetime import timedelta

    from fastapi.testclient import TestClient

    from cinema.core.config import Settings
    from cinema.core.security import create_access_token, decode_token
    from cinema.main import create_app

    app_settings = Settings(
        SECRET_KEY="per-app-secret",
        ADMIN_SECRET_KEY="per-app-admin",
        ACCESS_TOKEN_EXPIRE_MINUTES=5,
        AVAILABILITY_RECONCILE_SECONDS=0,
    )
    app = create_app(db_engine, app_settings)

    with TestClient(app) as c:
        body = {"email": "ops@example.com", "full_name": "Ops", "password": "pw", "admin_secret": "per-app-admin"}
        res = c.post(f"{API}/auth/admin/register", json=body)
        assert res.status_code == 201
        token = res.json()["access_token"]

        # Issued with the app's key and lifetime
        assert decode_token(token) is None
        assert decode_token(token, secret_key="per-app-secret").role == "admin"

        res = c.get(f"{API}/admin/bookings", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 200
        assert res.json() == []

        user_id = decode_token(token, secret_key="per-app-secret").sub
        foreign = create_access_token(subject=user_id, role="admin", expires_delta=timedelta(minutes=5))
        res = c.get(f"{API}/admin/bookings", headers={"Authorization": f"Bearer {foreign}"})
        assert res.status_code == 401

        res = c.post(
            f"{API}/auth/login",
            data={"username": "ops@example.com", "password": "pw"},
        )
        assert decode_token(res.json()["access_token"], secret_key="per-app-secret") is not None

        body = {**body, "email": "intruder@example.com", "admin_secret": settings.ADMIN_SECRET_KEY}
        assert c.post(f"{API}/auth/admin/register", json=body).status_code == 403
