from __future__ import annotations

import pytest


def _set(client, headers, catalog, day, price, grade="pepper_a", product="pepper"):
    return client.post(
        "/api/prices",
        json={
            "date": day,
            "product_id": catalog[product],
            "grade_id": catalog[grade],
            "price_per_kg": price,
        },
        headers=headers,
    )


def test_admin_sets_price_and_users_read_it(client, admin_headers, user_headers, catalog):
    assert _set(client, admin_headers, catalog, "2026-09-01", 12).status_code == 200
    assert _set(client, admin_headers, catalog, "2026-09-01", 13.5).status_code == 200

    one = client.get(
        f"/api/prices/2026-09-01/{catalog['pepper']}/{catalog['pepper_a']}",
        headers=user_headers,
    )
    assert one.status_code == 200
    assert one.json()["price_per_kg"] == pytest.approx(13.5)

    listed = client.get("/api/prices/2026-09-01", headers=user_headers)
    assert listed.status_code == 200
    mine = [p for p in listed.json()["prices"] if p["grade_id"] == catalog["pepper_a"]]
    assert len(mine) == 1
    assert mine[0]["price_per_kg"] == pytest.approx(13.5)


def test_missing_price_is_404(client, user_headers, catalog):
    resp = client.get(
        f"/api/prices/2026-09-02/{catalog['pepper']}/{catalog['pepper_b']}",
        headers=user_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_only_admins_set_prices(client, user_headers, catalog):
    assert _set(client, user_headers, catalog, "2026-09-01", 1).status_code == 403


def test_price_grade_must_match_product(client, admin_headers, catalog):
    resp = _set(client, admin_headers, catalog, "2026-09-01", 1, grade="saffron_a", product="pepper")
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_grade_for_product"


def test_bad_price_date_is_400(client, user_headers):
    assert client.get("/api/prices/yesterday", headers=user_headers).status_code == 400


def test_missing_price_values_inventory_at_zero(client, user_headers, catalog):
    client.post(
        "/api/lots",
        json={
            "date": "2026-09-05",
            "product_id": catalog["saffron"],
            "grade_id": catalog["saffron_a"],
            "quantity_kg": 2,
            "unit_cost": 50,
        },
        headers=user_headers,
    )

    payload = client.get("/api/inventory/on-date", params={"date": "2026-09-05"}, headers=user_headers).json()
    snapshot = payload["snapshots"][0]
    assert snapshot["market_price"] == 0
    assert snapshot["market_value"] == 0
    assert snapshot["unrealized_pnl"] == pytest.approx(-100)
