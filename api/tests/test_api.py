"""API tests: health, workspaces, bookings, reviews, wallet, profile, admin, error envelope and rollback."""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from conftest import auth_headers, local_slot, make_user, make_workspace
from coworking.models import AdminLog, Booking, User, WorkspaceType
from coworking.services.booking_rules import LOCAL_TZ
from coworking.services.wallet import get_balance

API = "/api/v1"


def _booking_body(workspace_id: int, start_hour: int, hours: int = 2) -> dict:
    start, end = local_slot(start_hour, hours)
    return {"workspace_id": workspace_id, "start_time": start.isoformat(), "end_time": end.isoformat()}


# ---------------------------------------------------------------------------
# Health and auth
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_me_unauthenticated(client):
    resp = await client.get(f"{API}/users/me")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_invalid_token(client):
    resp = await client.get(f"{API}/users/me", headers={"Authorization": "Bearer not.a.token"})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Workspaces
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_workspaces_by_rating(client, session_factory):
    await make_workspace(session_factory, name="Plain", rating=Decimal("3.5"))
    await make_workspace(session_factory, name="Best", rating=Decimal("4.9"), type=WorkspaceType.MANICURE)

    resp = await client.get(f"{API}/workspaces")
    assert resp.status_code == 200
    assert [w["name"] for w in resp.json()] == ["Best", "Plain"]

    resp = await client.get(f"{API}/workspaces", params={"type": "manicure"})
    assert [w["name"] for w in resp.json()] == ["Best"]


@pytest.mark.asyncio
async def test_get_workspace_not_found_envelope(client):
    resp = await client.get(f"{API}/workspaces/999")
    assert resp.status_code == 404
    assert resp.json() == {"detail": [{"rule": "not_found", "message": "Workspace #999 not found."}]}


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_booking(client, session_factory, client_user, workspace):
    resp = await client.post(f"{API}/bookings", json=_booking_body(workspace.id, 9), headers=auth_headers(client_user))
    assert resp.status_code == 201
    data = resp.json()
    assert Decimal(data["total_price"]) == Decimal("2000")
    assert Decimal(data["list_price"]) == Decimal("2000")
    assert data["discount_percent"] == 0
    assert data["points_awarded"] == 20

    async with session_factory() as db:
        assert await get_balance(db, client_user.id) == Decimal("3000.00")
        assert (await db.get(User, client_user.id)).points == 20


@pytest.mark.asyncio
async def test_create_booking_slot_conflict(client, session_factory, client_user, workspace):
    other = await make_user(session_factory, "other", balance=5000)
    resp = await client.post(f"{API}/bookings", json=_booking_body(workspace.id, 10), headers=auth_headers(client_user))
    assert resp.status_code == 201

    resp = await client.post(f"{API}/bookings", json=_booking_body(workspace.id, 11), headers=auth_headers(other))
    assert resp.status_code == 409
    detail = resp.json()["detail"][0]
    assert detail["rule"] == "slot_conflict"
    assert "10:00-12:00" in detail["message"]


@pytest.mark.asyncio
async def test_create_booking_insufficient_funds(client, session_factory, workspace):
    poor = await make_user(session_factory, "poor", balance=100)
    resp = await client.post(f"{API}/bookings", json=_booking_body(workspace.id, 9), headers=auth_headers(poor))
    assert resp.status_code == 402
    assert resp.json()["detail"][0]["rule"] == "insufficient_funds"

    async with session_factory() as db:
        assert (await db.execute(select(func.count(Booking.id)))).scalar_one() == 0


@pytest.mark.asyncio
async def test_create_booking_inverted_interval(client, client_user, workspace):
    body = _booking_body(workspace.id, 12)
    body["start_time"], body["end_time"] = body["end_time"], body["start_time"]
    resp = await client.post(f"{API}/bookings", json=body, headers=auth_headers(client_user))
    assert resp.status_code == 422
    assert resp.json()["detail"][0]["rule"] == "invalid_interval"


@pytest.mark.asyncio
async def test_create_booking_rolls_back_on_store_failure(client, session_factory, client_user, workspace):
    with patch(
        "coworking.services.booking_service.create_transaction",
        new=AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk I/O error"))),
    ):
        resp = await client.post(
            f"{API}/bookings", json=_booking_body(workspace.id, 9), headers=auth_headers(client_user)
        )
    assert resp.status_code == 500
    assert resp.json()["detail"][0]["rule"] == "internal_store_error"

    async with session_factory() as db:
        assert (await db.execute(select(func.count(Booking.id)))).scalar_one() == 0
        assert await get_balance(db, client_user.id) == Decimal("5000.00")
        assert (await db.get(User, client_user.id)).points == 0


@pytest.mark.asyncio
async def test_occupied_slots_in_local_time(client, client_user, workspace):
    body = _booking_body(workspace.id, 10)
    resp = await client.post(f"{API}/bookings", json=body, headers=auth_headers(client_user))
    assert resp.status_code == 201

    start, _ = local_slot(10)
    day = start.astimezone(LOCAL_TZ).date().isoformat()
    resp = await client.get(f"{API}/workspaces/{workspace.id}/occupied-slots", params={"date": day})
    assert resp.status_code == 200
    assert resp.json() == [{"start": "10:00", "end": "12:00"}]


@pytest.mark.asyncio
async def test_list_my_bookings(client, client_user, workspace):
    await client.post(f"{API}/bookings", json=_booking_body(workspace.id, 9), headers=auth_headers(client_user))

    resp = await client.get(f"{API}/bookings", headers=auth_headers(client_user))
    assert resp.status_code == 200
    bookings = resp.json()
    assert len(bookings) == 1
    assert bookings[0]["workspace_name"] == workspace.name
    assert bookings[0]["status"] == "confirmed"
    assert bookings[0]["payment_status"] == "paid"


@pytest.mark.asyncio
async def test_cancel_booking(client, session_factory, client_user, workspace):
    resp = await client.post(f"{API}/bookings", json=_booking_body(workspace.id, 9), headers=auth_headers(client_user))
    booking_id = resp.json()["id"]

    other = await make_user(session_factory, "other")
    resp = await client.post(f"{API}/bookings/{booking_id}/cancel", headers=auth_headers(other))
    assert resp.status_code == 403

    resp = await client.post(f"{API}/bookings/{booking_id}/cancel", headers=auth_headers(client_user))
    assert resp.status_code == 200
    assert resp.json() == {"refunded": True}

    resp = await client.get(f"{API}/transactions/balance", headers=auth_headers(client_user))
    assert Decimal(resp.json()["balance"]) == Decimal("5000")

    resp = await client.post(f"{API}/bookings/{booking_id}/cancel", headers=auth_headers(client_user))
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_reschedule_booking(client, client_user, workspace):
    resp = await client.post(f"{API}/bookings", json=_booking_body(workspace.id, 9), headers=auth_headers(client_user))
    booking_id = resp.json()["id"]

    new = _booking_body(workspace.id, 15)
    resp = await client.post(
        f"{API}/bookings/{booking_id}/reschedule",
        json={"start_time": new["start_time"], "end_time": new["end_time"]},
        headers=auth_headers(client_user),
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    start, _ = local_slot(15)
    day = start.astimezone(LOCAL_TZ).date().isoformat()
    resp = await client.get(f"{API}/workspaces/{workspace.id}/occupied-slots", params={"date": day})
    assert resp.json() == [{"start": "15:00", "end": "17:00"}]


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_review(client, client_user, workspace):
    resp = await client.post(
        f"{API}/reviews",
        json={"workspace_id": workspace.id, "rating": 5, "comment": "Great mirror"},
        headers=auth_headers(client_user),
    )
    assert resp.status_code == 201
    assert "id" in resp.json()

    resp = await client.get(f"{API}/workspaces/{workspace.id}")
    assert Decimal(resp.json()["rating"]) == Decimal("5")
    assert resp.json()["review_count"] == 1

    resp = await client.get(f"{API}/workspaces/{workspace.id}/reviews")
    assert resp.json()[0]["user_name"] == client_user.name


@pytest.mark.asyncio
async def test_review_rating_out_of_range(client, client_user, workspace):
    resp = await client.post(
        f"{API}/reviews",
        json={"workspace_id": workspace.id, "rating": 6},
        headers=auth_headers(client_user),
    )
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_top_up(client, client_user):
    resp = await client.post(f"{API}/transactions/top-up", json={"amount": "1500"}, headers=auth_headers(client_user))
    assert resp.status_code == 201
    data = resp.json()
    assert Decimal(data["balance"]) == Decimal("6500")
    assert "amount=1500" in data["payment_link"]

    resp = await client.get(f"{API}/transactions", headers=auth_headers(client_user))
    latest = resp.json()[0]
    assert latest["type"] == "deposit"
    assert latest["payment_method"] == "qr_code"


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["99.99", "100000.01"])
async def test_top_up_out_of_bounds(client, client_user, amount):
    resp = await client.post(f"{API}/transactions/top-up", json={"amount": amount}, headers=auth_headers(client_user))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_transaction_stores_signed_amount(client, client_user):
    resp = await client.post(
        f"{API}/transactions",
        json={"type": "withdrawal", "amount": "-250", "description": "Cash out"},
        headers=auth_headers(client_user),
    )
    assert resp.status_code == 201

    resp = await client.get(f"{API}/transactions/balance", headers=auth_headers(client_user))
    assert Decimal(resp.json()["balance"]) == Decimal("4750")


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_profile_shows_next_tier(client, session_factory):
    user = await make_user(session_factory, "silver", points=800)
    resp = await client.get(f"{API}/users/me", headers=auth_headers(user))
    assert resp.status_code == 200
    data = resp.json()
    assert data["points"] == 800
    assert data["discount_percent"] == 5
    assert data["next_status"] == "gold"
    assert data["points_to_next_status"] == 700


@pytest.mark.asyncio
async def test_profile_stats(client, client_user, workspace):
    await client.post(f"{API}/bookings", json=_booking_body(workspace.id, 9), headers=auth_headers(client_user))

    resp = await client.get(f"{API}/users/me/stats", headers=auth_headers(client_user))
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_bookings"] == 1
    assert data["active_bookings"] == 1
    assert Decimal(data["balance"]) == Decimal("3000")


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_admin_requires_admin_role(client, client_user):
    resp = await client.get(f"{API}/admin/stats", headers=auth_headers(client_user))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_workspace_crud_is_audited(client, session_factory, admin_user):
    headers = auth_headers(admin_user)
    resp = await client.post(
        f"{API}/admin/workspaces",
        json={"name": "Cabinet 3", "type": "massage", "price_per_hour": "1200", "price_per_day": "8000"},
        headers=headers,
    )
    assert resp.status_code == 201
    workspace_id = resp.json()["id"]
    assert resp.json()["identifier"] == f"WP-{workspace_id:04d}"

    resp = await client.put(f"{API}/admin/workspaces/{workspace_id}", json={"is_available": False}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["is_available"] is False

    resp = await client.delete(f"{API}/admin/workspaces/{workspace_id}", headers=headers)
    assert resp.status_code == 200

    resp = await client.get(f"{API}/admin/logs", headers=headers)
    actions = sorted(entry["action"] for entry in resp.json())
    assert actions == ["workspace_created", "workspace_deleted", "workspace_updated"]


@pytest.mark.asyncio
async def test_admin_update_user_points(client, admin_user, client_user):
    resp = await client.put(
        f"{API}/admin/users/{client_user.id}",
        json={"points": 3200},
        headers=auth_headers(admin_user),
    )
    assert resp.status_code == 200
    assert resp.json()["points"] == 3200
    assert resp.json()["status"] == "platinum"


@pytest.mark.asyncio
async def test_admin_delete_review(client, session_factory, admin_user, client_user, workspace):
    resp = await client.post(
        f"{API}/reviews", json={"workspace_id": workspace.id, "rating": 2}, headers=auth_headers(client_user)
    )
    review_id = resp.json()["id"]

    resp = await client.delete(f"{API}/admin/reviews/{review_id}", headers=auth_headers(admin_user))
    assert resp.status_code == 200

    resp = await client.get(f"{API}/workspaces/{workspace.id}")
    assert resp.json()["review_count"] == 0
    assert Decimal(resp.json()["rating"]) == Decimal("0")

    async with session_factory() as db:
        log = (await db.execute(select(AdminLog))).scalar_one()
        assert log.entity_id == review_id


@pytest.mark.asyncio
async def test_admin_stats_and_booking_status(client, admin_user, client_user, workspace):
    resp = await client.post(f"{API}/bookings", json=_booking_body(workspace.id, 9), headers=auth_headers(client_user))
    booking_id = resp.json()["id"]
    headers = auth_headers(admin_user)

    resp = await client.put(f"{API}/admin/bookings/{booking_id}/status", json={"status": "completed"}, headers=headers)
    assert resp.status_code == 200

    resp = await client.get(f"{API}/admin/bookings", headers=headers)
    assert resp.json()[0]["status"] == "completed"
    assert resp.json()[0]["user_name"] == client_user.name

    resp = await client.get(f"{API}/admin/stats", headers=headers)
    data = resp.json()
    assert data["total_bookings"] == 1
    assert data["active_bookings"] == 0
    assert Decimal(data["total_revenue"]) == Decimal("2000")
