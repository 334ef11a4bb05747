# tests/test_api.py
import pytest

API = "/api/v1"


@pytest.fixture()
def ids(catalog):
    return {k: v.id for k, v in catalog.items()}


def _create(client, ids, **extra):
    body = {
        "customer_id": ids["retail"],
        "items": [{"material_id": ids["banner"], "length": 2, "width": 3, "qty": 2}],
    }
    body.update(extra)
    r = client.post(f"{API}/orders", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_and_read_order(client, ids):
    data = _create(client, ids)
    assert data["nota_no"] == "INV-001"
    assert data["status"] == "pending"
    assert data["total"] == 600000
    assert data["remaining"] == 600000
    assert data["lines"][0]["billed_area"] == 6

    r = client.get(f"{API}/orders/{data['id']}")
    assert r.status_code == 200
    assert r.json()["customer"]["name"] == "Toko Maju"

    r = client.get(f"{API}/orders/{data['id']}/total")
    assert r.json() == {"order_id": data["id"], "nota_no": "INV-001", "total": 600000}


def test_engine_errors_carry_rule_name(client, ids):
    r = client.post(f"{API}/orders", json={"customer_id": ids["retail"], "items": []})
    assert r.status_code == 422
    body = r.json()
    assert body["error"] == "ValidationError"
    assert body["invariant"] == "order_has_items"

    r = client.get(f"{API}/orders/999/total")
    assert r.status_code == 404
    assert r.json()["invariant"] == "order_exists"


def test_status_flow_over_http(client, ids):
    order = _create(client, ids)
    oid = order["id"]

    r = client.post(f"{API}/orders/{oid}/status", json={"event": "start"})
    assert r.status_code == 422
    assert r.json()["invariant"] == "transition_records_operator"

    r = client.post(f"{API}/orders/{oid}/status", json={"event": "start", "operator_id": ids["operator"]})
    assert r.status_code == 200
    assert r.json()["executor_id"] == ids["operator"]

    item_id = order["items"][0]["id"]
    for ev in ("start", "finish"):
        r = client.post(f"{API}/orders/{oid}/items/{item_id}/status", json={"event": ev})
        assert r.status_code == 200, r.text
    assert r.json()["items"][0]["production_status"] == "ready"

    r = client.post(f"{API}/orders/{oid}/status", json={"event": "MARK_READY"})
    assert r.json()["status"] == "ready_for_pickup"

    r = client.put(f"{API}/orders/{oid}", json={"items": [{"material_id": ids["sticker"]}]})
    assert r.status_code == 409
    assert r.json()["invariant"] == "order_editable_only_when_pending"


def test_stale_version_is_conflict(client, ids):
    order = _create(client, ids)
    r = client.put(
        f"{API}/orders/{order['id']}",
        json={"items": [{"material_id": ids["sticker"], "qty": 1}], "expected_version": order["version"] + 1},
    )
    assert r.status_code == 409
    assert r.json()["error"] == "ConcurrentModificationError"


def test_payments_over_http(client, ids):
    order = _create(client, ids)
    oid = order["id"]

    r = client.post(f"{API}/orders/{oid}/payments", json={"amount": 400000, "operator_id": ids["cashier"]})
    assert r.status_code == 201, r.text
    assert r.json()["payment_status"] == "partially_paid"
    assert r.json()["remaining"] == 200000

    r = client.post(f"{API}/orders/{oid}/payments", json={"amount": 200001})
    assert r.status_code == 409
    assert r.json()["invariant"] == "payments_never_exceed_bill"

    r = client.post(f"{API}/orders/{oid}/payments", json={"amount": 200000, "bank_id": ids["bca"]})
    assert r.json()["payment_status"] == "paid"

    r = client.get(f"{API}/orders/{oid}/payments")
    assert [p["amount"] for p in r.json()] == [400000, 200000]


def test_bulk_payment_over_http(client, ids):
    a = _create(client, ids, items=[{"material_id": ids["banner"], "qty": 2}])  # 100,000
    b = _create(client, ids, items=[{"material_id": ids["banner"], "qty": 5}])  # 250,000

    r = client.post(f"{API}/payments/bulk", json={"order_ids": [a["id"], b["id"]], "total_amount": 300000})
    assert r.status_code == 201, r.text
    body = r.json()
    assert [p["amount"] for p in body["payments"]] == [100000, 200000]
    assert body["batch_ref"]

    r = client.post(f"{API}/payments/bulk", json={"order_ids": [a["id"], b["id"]], "total_amount": 50001})
    assert r.status_code == 409


def test_delete_needs_confirm_when_paid(client, ids):
    order = _create(client, ids)
    client.post(f"{API}/orders/{order['id']}/payments", json={"amount": 1000})
    r = client.delete(f"{API}/orders/{order['id']}")
    assert r.status_code == 422
    r = client.delete(f"{API}/orders/{order['id']}", params={"confirm": True})
    assert r.status_code == 204
    assert client.get(f"{API}/orders/{order['id']}").status_code == 404


def test_list_orders_paging_and_filters(client, ids):
    for _ in range(3):
        _create(client, ids)
    r = client.get(f"{API}/orders", params={"per_page": 2})
    page = r.json()
    assert page["total"] == 3
    assert page["pages"] == 2
    assert len(page["items"]) == 2

    r = client.get(f"{API}/orders", params={"q": "INV-002"})
    assert [o["nota_no"] for o in r.json()["items"]] == ["INV-002"]

    r = client.get(f"{API}/orders", params={"status": "processing"})
    assert r.json()["total"] == 0


def test_nota_settings_endpoints(client, ids):
    r = client.get(f"{API}/nota-settings")
    assert r.json() == {"prefix": "INV", "start_number_str": "001", "width": 3, "next_number": "INV-001"}

    r = client.put(f"{API}/nota-settings", json={"prefix": "NT", "start_number_str": "0050"})
    assert r.status_code == 200
    assert r.json()["next_number"] == "NT-0050"

    r = client.put(f"{API}/nota-settings", json={"prefix": "has space"})
    assert r.status_code == 422

    assert client.get(f"{API}/nota-settings/next").json() == {"next_number": "NT-0050"}
    assert _create(client, ids)["nota_no"] == "NT-0050"


def test_reports(client, ids):
    order = _create(client, ids)
    client.post(f"{API}/orders/{order['id']}/payments", json={"amount": 100000, "bank_id": ids["ovo"]})

    r = client.get(f"{API}/reports/revenue-by-source")
    body = r.json()
    assert body["sources"]["Digital Wallet"] == 100000
    assert body["sources"]["Cash"] == 0
    assert body["total"] == 100000

    r = client.get(f"{API}/reports/receivables")
    assert r.json()["total_outstanding"] == 500000
    assert r.json()["items"][0]["nota_no"] == "INV-001"


def test_catalog_crud(client, ids):
    r = client.post(f"{API}/customers", json={"name": "Andi", "tier": "wholesale"})
    assert r.status_code == 201
    cid = r.json()["id"]

    r = client.post(f"{API}/customers", json={"name": "Bad", "tier": "vip"})
    assert r.status_code == 422

    r = client.put(f"{API}/customers/{cid}", json={"phone": "0812"})
    assert r.json()["phone"] == "0812"
    assert r.json()["tier"] == "wholesale"

    r = client.post(f"{API}/materials", json={"name": "Albatros", "price_retail": -1})
    assert r.status_code == 422

    r = client.post(f"{API}/banks", json={"name": "QR Toko", "category": "Qris"})
    assert r.status_code == 201
    assert r.json()["category"] == "Qris"

    # still referenced by an order
    _create(client, ids)
    assert client.delete(f"{API}/materials/{ids['banner']}").status_code == 409
    assert client.delete(f"{API}/customers/{cid}").status_code == 204
