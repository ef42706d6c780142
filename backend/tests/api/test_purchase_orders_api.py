"""
API tests for /api/v1/purchase-orders
"""
import pytest
from datetime import datetime
from decimal import Decimal

from app.models import Product, PurchaseOrder

from tests.factories import (
    create_test_product,
    create_test_purchase_order,
    create_test_shop,
    create_test_supplier,
)

BASE = "/api/v1/purchase-orders"


@pytest.fixture
def catalog(db_session):
    shop = create_test_shop(db_session)
    supplier = create_test_supplier(db_session, shop=shop, name="Acme Wholesale")
    widget = create_test_product(db_session, shop=shop, name="Widget")
    gadget = create_test_product(db_session, shop=shop, name="Gadget")
    db_session.commit()
    return {"shop": shop, "supplier": supplier, "widget": widget, "gadget": gadget}


def _create_payload(catalog, **overrides):
    payload = {
        "shop_id": catalog["shop"].id,
        "supplier_id": catalog["supplier"].id,
        "items": [
            {"product_id": catalog["widget"].id, "quantity": 2, "unit_cost": "10.00"},
            {"product_id": catalog["gadget"].id, "quantity": 3, "unit_cost": "5.50"},
        ],
        "terms": "Net 30",
    }
    payload.update(overrides)
    return payload


class TestCreate:

    @pytest.mark.api
    def test_create_draft(self, client, catalog, actor_headers):
        response = client.post(f"{BASE}/create", json=_create_payload(catalog), headers=actor_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["po_number"] == f"PO-{datetime.utcnow().year}-000001"
        assert data["status"] == "draft"
        assert data["supplier"]["name"] == "Acme Wholesale"
        assert Decimal(data["subtotal"]) == Decimal("36.50")
        assert Decimal(data["tax"]) == Decimal("2.92")
        assert Decimal(data["total"]) == Decimal("39.42")
        assert [item["position"] for item in data["items"]] == [1, 2]
        assert data["items"][0]["product_name"] == "Widget"
        assert data["created_by"] == "user-42"
        assert data["status_history"][0]["status"] == "draft"
        assert data["status_history"][0]["updated_by"] == "user-42"
        assert data["completion_percentage"] == 0

    @pytest.mark.api
    def test_sequential_numbers(self, client, catalog):
        first = client.post(f"{BASE}/create", json=_create_payload(catalog)).json()
        second = client.post(f"{BASE}/create", json=_create_payload(catalog)).json()

        assert first["po_number"].endswith("-000001")
        assert second["po_number"].endswith("-000002")

    @pytest.mark.api
    def test_empty_items_rejected(self, client, catalog):
        response = client.post(f"{BASE}/create", json=_create_payload(catalog, items=[]))

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert any(e["field"] == "items" for e in body["details"]["errors"])

    @pytest.mark.api
    def test_unit_cost_precision_rejected(self, client, catalog):
        payload = _create_payload(catalog)
        payload["items"][0]["unit_cost"] = "10.005"

        response = client.post(f"{BASE}/create", json=payload)

        assert response.status_code == 422

    @pytest.mark.api
    def test_delivery_date_offset_stored_as_utc(self, client, catalog, db_session):
        payload = _create_payload(catalog, expected_delivery_date="2030-01-01T00:00:00+05:00")

        response = client.post(f"{BASE}/create", json=payload)

        assert response.status_code == 201
        assert response.json()["expected_delivery_date"] == "2029-12-31T19:00:00"
        po = db_session.get(PurchaseOrder, response.json()["id"])
        assert po.expected_delivery_date == datetime(2029, 12, 31, 19, 0)

    @pytest.mark.api
    def test_unknown_supplier(self, client, catalog, db_session):
        response = client.post(f"{BASE}/create", json=_create_payload(catalog, supplier_id=9999))

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "NOT_FOUND"
        assert body["details"]["resource"] == "Supplier"
        assert "timestamp" in body
        assert db_session.query(PurchaseOrder).count() == 0


class TestQueries:

    @pytest.mark.api
    def test_get_not_found(self, client):
        response = client.get(f"{BASE}/12345")

        assert response.status_code == 404
        assert response.json()["message"] == "Purchase order with ID 12345 not found"

    @pytest.mark.api
    def test_list_paginates_and_filters(self, client, catalog, db_session):
        supplier = catalog["supplier"]
        widget = catalog["widget"]
        for _ in range(3):
            create_test_purchase_order(db_session, supplier, [(widget, 1, Decimal("1.00"))])
        create_test_purchase_order(db_session, supplier, [(widget, 1, Decimal("1.00"))], status="sent")
        other_shop_supplier = create_test_supplier(db_session)
        create_test_purchase_order(db_session, other_shop_supplier, [(widget, 1, Decimal("1.00"))])
        db_session.commit()

        response = client.get(f"{BASE}/list", params={"shop_id": catalog["shop"].id, "limit": 2, "page": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"] == {
            "current_page": 2,
            "total_pages": 2,
            "total_items": 4,
            "items_per_page": 2,
        }
        assert len(data["items"]) == 2
        assert data["items"][0]["supplier_name"] == "Acme Wholesale"

        sent = client.get(f"{BASE}/list", params={"shop_id": catalog["shop"].id, "status": "sent"}).json()
        assert [po["status"] for po in sent["items"]] == ["sent"]

    @pytest.mark.api
    def test_list_date_filter_honours_offset(self, client, catalog, db_session):
        supplier = catalog["supplier"]
        widget = catalog["widget"]
        early = create_test_purchase_order(
            db_session, supplier, [(widget, 1, Decimal("1.00"))], created_at=datetime(2030, 1, 1, 3, 0)
        )
        late = create_test_purchase_order(
            db_session, supplier, [(widget, 1, Decimal("1.00"))], created_at=datetime(2030, 1, 1, 10, 0)
        )
        db_session.commit()

        # 12:00 at +05:00 is 07:00 UTC
        response = client.get(
            f"{BASE}/list",
            params={"shop_id": catalog["shop"].id, "start_date": "2030-01-01T12:00:00+05:00"},
        )

        assert response.status_code == 200
        ids = [po["id"] for po in response.json()["items"]]
        assert late.id in ids
        assert early.id not in ids

    @pytest.mark.api
    def test_list_rejects_unknown_status(self, client, catalog):
        response = client.get(f"{BASE}/list", params={"shop_id": catalog["shop"].id, "status": "lost"})

        assert response.status_code == 422

    @pytest.mark.api
    def test_list_requires_shop(self, client):
        assert client.get(f"{BASE}/list").status_code == 422


class TestLifecycle:

    @pytest.mark.api
    def test_status_update_records_history(self, client, catalog, actor_headers):
        po = client.post(f"{BASE}/create", json=_create_payload(catalog)).json()

        response = client.put(
            f"{BASE}/{po['id']}/status",
            json={"status": "sent", "notes": "Emailed to supplier"},
            headers=actor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "sent"
        assert data["sent_at"] is not None
        assert data["updated_by"] == "user-42"
        assert data["status_history"][-1]["notes"] == "Emailed to supplier"

    @pytest.mark.api
    def test_receive_updates_stock(self, client, catalog, db_session, actor_headers):
        po = client.post(f"{BASE}/create", json=_create_payload(catalog)).json()
        widget_id = catalog["widget"].id

        response = client.post(
            f"{BASE}/{po['id']}/receive",
            json={"items": [
                {"product_id": widget_id, "received_quantity": 2},
                {"product_id": 9999, "received_quantity": 1},
            ]},
            headers=actor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["purchase_order"]["status"] == "partially_received"
        assert data["skipped_items"] == [9999]
        assert data["stock_increments"] == [{"product_id": widget_id, "quantity": 2}]
        db_session.expire_all()
        widget = db_session.get(Product, widget_id)
        assert (widget.stock_godown, widget.stock_total, widget.quantity) == (2, 2, 2)

    @pytest.mark.api
    def test_receive_decrease_rejected(self, client, catalog, db_session):
        supplier, widget = catalog["supplier"], catalog["widget"]
        po = create_test_purchase_order(
            db_session, supplier, [(widget, 5, Decimal("1.00"))],
            status="partially_received", received={widget.id: 3},
        )
        db_session.commit()

        response = client.post(
            f"{BASE}/{po.id}/receive",
            json={"items": [{"product_id": widget.id, "received_quantity": 1}]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.api
    def test_cancel(self, client, catalog):
        po = client.post(f"{BASE}/create", json=_create_payload(catalog)).json()

        response = client.delete(f"{BASE}/{po['id']}")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    @pytest.mark.api
    def test_cancel_received_rejected(self, client, catalog, db_session):
        supplier, widget = catalog["supplier"], catalog["widget"]
        po = create_test_purchase_order(
            db_session, supplier, [(widget, 5, Decimal("1.00"))],
            status="received", received={widget.id: 5},
        )
        db_session.commit()

        response = client.delete(f"{BASE}/{po.id}")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "INVALID_STATE"
        assert body["details"]["current_state"] == "received"
