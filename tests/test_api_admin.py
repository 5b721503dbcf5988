from __future__ import annotations

from datetime import date

from villa_booking.models.audit_log import AuditLog
from villa_booking.models.blackout_date import BlackoutDate
from villa_booking.models.booking import STATUS_CANCELLED, STATUS_COMPLETED, STATUS_PENDING
from villa_booking.models.property import Property

VILLA = {
    "name": "Sunset Villa",
    "slug": "sunset-villa",
    "description": "Ocean view villa",
    "location": "Uluwatu, Bali",
    "bedrooms": 3,
    "bathrooms": 2,
    "max_guests": 6,
    "base_price": 2500000,
    "amenities": ["pool", "wifi"],
}

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_admin_routes_require_admin(client, guest_headers):
    assert client.get("/api/admin/villas").status_code == 401
    assert client.get("/api/admin/villas", headers=guest_headers).status_code == 403


def test_villa_crud(client, admin_headers, db):
    r = client.post("/api/admin/villas", json=VILLA, headers=admin_headers)
    assert r.status_code == 201
    villa = r.json()
    assert villa["slug"] == "sunset-villa"
    assert villa["base_price"] == 2500000
    assert villa["is_active"] is True

    r = client.post("/api/admin/villas", json={**VILLA, "name": "Copy"}, headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "SlugTaken"

    r = client.patch(f"/api/admin/villas/{villa['id']}", json={"base_price": 2750000, "is_active": False}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["base_price"] == 2750000
    assert r.json()["is_active"] is False

    r = client.get("/api/admin/villas", headers=admin_headers)
    assert r.json()["pagination"]["total"] == 1

    r = client.delete(f"/api/admin/villas/{villa['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["deleted"] is True
    db.expire_all()
    assert db.get(Property, villa["id"]) is None

    actions = {log.action_type for log in db.query(AuditLog).all()}
    assert {"VILLA_CREATE", "VILLA_UPDATE", "VILLA_DELETE"} <= actions


def test_invalid_slug_is_rejected(client, admin_headers):
    r = client.post("/api/admin/villas", json={**VILLA, "slug": "Not A Slug"}, headers=admin_headers)
    assert r.status_code == 422


def test_delete_blocked_by_active_booking(client, admin_headers, villa, add_booking):
    add_booking(villa, date(2030, 6, 1), date(2030, 6, 4))
    r = client.delete(f"/api/admin/villas/{villa.id}", headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "ActiveBookings"


def test_delete_villa_with_history_deactivates_it(client, admin_headers, villa, add_booking, db):
    add_booking(villa, date(2025, 6, 1), date(2025, 6, 4), status=STATUS_COMPLETED)
    r = client.delete(f"/api/admin/villas/{villa.id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["deactivated"] is True
    db.expire_all()
    assert db.get(Property, villa.id).is_active is False


def test_image_upload_and_management(client, admin_headers, villa, storage):
    url = f"/api/admin/villas/{villa.id}/images"
    r = client.post(url, files={"file": ("pool.png", PNG_BYTES, "image/png")}, data={"alt": "Pool", "is_primary": "true"}, headers=admin_headers)
    assert r.status_code == 201
    first = r.json()
    assert first["is_primary"] is True
    assert first["url"].startswith("/media/villas/")
    assert storage.exists(first["file_path"])

    r = client.post(url, files={"file": ("room.png", PNG_BYTES, "image/png")}, headers=admin_headers)
    second = r.json()
    assert second["alt"] == "room.png"
    assert second["sort_order"] == first["sort_order"] + 1

    r = client.patch(f"{url}/{second['id']}", json={"is_primary": True}, headers=admin_headers)
    assert r.json()["is_primary"] is True

    images = client.get(url, headers=admin_headers).json()
    assert [(i["id"], i["is_primary"]) for i in images] == [(second["id"], True), (first["id"], False)]

    detail = client.get(f"/api/public/villas/{villa.slug}").json()
    assert detail["primary_image"]["id"] == second["id"]

    r = client.delete(f"{url}/{first['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert not storage.exists(first["file_path"])
    assert client.delete(f"{url}/{first['id']}", headers=admin_headers).status_code == 404


def test_image_type_and_size_are_checked(client, admin_headers, villa, monkeypatch):
    url = f"/api/admin/villas/{villa.id}/images"
    r = client.post(url, files={"file": ("notes.txt", b"hello", "text/plain")}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "ImageRejected"

    monkeypatch.setattr("villa_booking.services.image_service.get_settings", lambda: type("S", (), {"max_image_bytes": 16})())
    r = client.post(url, files={"file": ("big.png", PNG_BYTES, "image/png")}, headers=admin_headers)
    assert r.status_code == 400
    assert "too large" in r.json()["detail"]


def test_pricing_rule_crud_changes_quotes(client, admin_headers, villa):
    url = f"/api/admin/villas/{villa.id}/pricing-rules"
    rule = {"starts_on": "2025-06-01", "ends_on": "2025-06-30", "kind": "percentage", "value": 20}
    r = client.post(url, json=rule, headers=admin_headers)
    assert r.status_code == 201
    created = r.json()
    assert created["villa_id"] == villa.id

    quote = {"villa_id": villa.id, "check_in": "2025-06-01", "check_out": "2025-06-04", "guests": 2}
    body = client.post("/api/public/quote", json=quote).json()
    assert body["total"] == 3600000
    assert body["applied_rule_id"] == created["id"]

    r = client.patch(f"{url}/{created['id']}", json={"kind": "flat", "value": -100000}, headers=admin_headers)
    assert r.status_code == 200
    assert client.post("/api/public/quote", json=quote).json()["total"] == 2700000

    r = client.patch(f"{url}/{created['id']}", json={"starts_on": "2025-07-01"}, headers=admin_headers)
    assert r.status_code == 400

    assert len(client.get(url, headers=admin_headers).json()) == 1
    assert client.delete(f"{url}/{created['id']}", headers=admin_headers).status_code == 200
    assert client.post("/api/public/quote", json=quote).json()["total"] == 3000000


def test_pricing_rule_window_is_validated(client, admin_headers, villa):
    url = f"/api/admin/villas/{villa.id}/pricing-rules"
    r = client.post(url, json={"starts_on": "2025-06-30", "ends_on": "2025-06-01", "kind": "flat", "value": 1}, headers=admin_headers)
    assert r.status_code == 422
    r = client.post(url, json={"starts_on": "2025-06-01", "ends_on": "2025-06-30", "kind": "bogus", "value": 1}, headers=admin_headers)
    assert r.status_code == 422


def test_pricing_rule_patch_rejects_nulls(client, admin_headers, villa, add_rule):
    rule = add_rule(villa, starts_on=date(2025, 6, 1), ends_on=date(2025, 6, 30), kind="percentage", value=10)
    url = f"/api/admin/villas/{villa.id}/pricing-rules/{rule.id}"

    for field in ("starts_on", "ends_on", "kind", "value"):
        r = client.patch(url, json={field: None}, headers=admin_headers)
        assert r.status_code == 422, field

    r = client.patch(url, json={"min_nights": 2, "max_nights": None}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["min_nights"] == 2
    assert r.json()["max_nights"] is None
    assert r.json()["value"] == 10


def test_percentage_rule_cannot_go_below_zero(client, admin_headers, villa):
    url = f"/api/admin/villas/{villa.id}/pricing-rules"
    rule = {"starts_on": "2025-06-01", "ends_on": "2025-06-30", "kind": "percentage", "value": -150}
    assert client.post(url, json=rule, headers=admin_headers).status_code == 422

    r = client.post(url, json={**rule, "value": -100}, headers=admin_headers)
    assert r.status_code == 201
    created = r.json()

    quote = {"villa_id": villa.id, "check_in": "2025-06-01", "check_out": "2025-06-04", "guests": 2}
    assert client.post("/api/public/quote", json=quote).json()["total"] == 0

    r = client.patch(f"{url}/{created['id']}", json={"kind": "flat", "value": -150}, headers=admin_headers)
    assert r.status_code == 200
    r = client.patch(f"{url}/{created['id']}", json={"kind": "percentage"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "ValidationError"


def test_flat_discount_floors_quote_at_zero(client, admin_headers, villa):
    url = f"/api/admin/villas/{villa.id}/pricing-rules"
    rule = {"starts_on": "2025-06-01", "ends_on": "2025-06-30", "kind": "flat", "value": -1500000}
    assert client.post(url, json=rule, headers=admin_headers).status_code == 201

    quote = {"villa_id": villa.id, "check_in": "2025-06-01", "check_out": "2025-06-04", "guests": 2}
    body = client.post("/api/public/quote", json=quote).json()
    assert body["total"] == 0
    assert body["adjustment"] == -3000000


def test_villa_patch_rejects_nulls(client, admin_headers, villa):
    url = f"/api/admin/villas/{villa.id}"
    for field in ("slug", "name", "max_guests", "base_price", "amenities", "is_active"):
        r = client.patch(url, json={field: None}, headers=admin_headers)
        assert r.status_code == 422, field

    r = client.patch(url, json={"rating_average": None}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["rating_average"] is None
    assert r.json()["slug"] == villa.slug


def test_blackouts(client, admin_headers, villa, db):
    url = f"/api/admin/villas/{villa.id}/blackout-dates"
    r = client.post(url, json={"date": "2030-06-02", "reason": "Maintenance"}, headers=admin_headers)
    assert r.status_code == 201
    single = r.json()
    assert client.post(url, json={"date": "2030-06-02"}, headers=admin_headers).status_code == 400

    r = client.post(f"{url}/bulk", json={"date_from": "2030-06-01", "date_to": "2030-06-05", "reason": "Owner stay"}, headers=admin_headers)
    assert r.json() == {"ok": True, "created": 4, "skipped": 1}

    quote = {"villa_id": villa.id, "check_in": "2030-06-01", "check_out": "2030-06-03", "guests": 2}
    assert client.post("/api/public/quote", json=quote).json()["error"] == "BlackedOut"

    listed = client.get(url, headers=admin_headers, params={"from_date": "2030-06-02", "to_date": "2030-06-03"}).json()
    assert [b["date"] for b in listed] == ["2030-06-02", "2030-06-03"]

    assert client.delete(f"{url}/{single['id']}", headers=admin_headers).status_code == 200
    db.expire_all()
    assert db.query(BlackoutDate).filter(BlackoutDate.property_id == villa.id).count() == 4


def test_admin_booking_management(client, admin_headers, villa, add_booking):
    confirmed = add_booking(villa, date(2030, 6, 1), date(2030, 6, 4), guest_name="Budi")
    pending = add_booking(villa, date(2030, 6, 2), date(2030, 6, 5), status=STATUS_PENDING)

    r = client.get("/api/admin/bookings", headers=admin_headers, params={"villa_id": villa.id})
    assert r.json()["pagination"]["total"] == 2

    r = client.get("/api/admin/bookings", headers=admin_headers, params={"search": "budi"})
    assert [b["id"] for b in r.json()["bookings"]] == [confirmed.id]

    assert client.get(f"/api/admin/bookings/{confirmed.id}", headers=admin_headers).json()["guest_name"] == "Budi"

    r = client.patch(f"/api/admin/bookings/{pending.id}", json={"status": "confirmed"}, headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "Conflict"

    r = client.patch(f"/api/admin/bookings/{confirmed.id}", json={"status": STATUS_CANCELLED}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["cancelled_at"] is not None

    r = client.patch(f"/api/admin/bookings/{pending.id}", json={"status": "confirmed"}, headers=admin_headers)
    assert r.status_code == 200

    r = client.patch(f"/api/admin/bookings/{confirmed.id}", json={"status": "confirmed"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "InvalidStatusTransition"


def test_audit_log_listing(client, admin_headers, villa):
    client.post(f"/api/admin/villas/{villa.id}/blackout-dates", json={"date": "2030-06-02"}, headers=admin_headers)
    logs = client.get("/api/admin/audit-logs", headers=admin_headers, params={"action_type": "BLACKOUT_SINGLE"}).json()
    assert len(logs) == 1
    assert logs[0]["target_type"] == "blackout"
