"""
API tests for /api/v1/suppliers
"""
import pytest

from app.models import ActivityLog, Supplier

from tests.factories import create_test_shop, create_test_supplier

BASE = "/api/v1/suppliers"


@pytest.fixture
def shop(db_session):
    shop = create_test_shop(db_session)
    db_session.commit()
    return shop


def _payload(shop, **overrides):
    payload = {
        "shop_id": shop.id,
        "name": "Northwind Traders",
        "email": "Orders@Northwind.example",
        "phone": "555-0199",
        "city": "Portland",
        "state": "OR",
    }
    payload.update(overrides)
    return payload


@pytest.mark.api
def test_create_supplier(client, shop, actor_headers, db_session):
    response = client.post(f"{BASE}/create", json=_payload(shop), headers=actor_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "orders@northwind.example"
    assert data["payment_terms"] == "net_30"
    assert data["rating"] == 3
    assert data["is_active"] is True
    assert data["total_orders"] == 0
    assert data["created_by"] == "user-42"
    assert db_session.query(ActivityLog).filter_by(action="CREATE_SUPPLIER").count() == 1


@pytest.mark.api
def test_duplicate_email_in_same_shop(client, shop):
    client.post(f"{BASE}/create", json=_payload(shop))

    response = client.post(f"{BASE}/create", json=_payload(shop, name="Other", email="orders@northwind.example"))

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "DUPLICATE_ERROR"
    assert body["details"]["field"] == "email"


@pytest.mark.api
def test_same_email_in_another_shop(client, shop, db_session):
    other_shop = create_test_shop(db_session)
    db_session.commit()
    client.post(f"{BASE}/create", json=_payload(shop))

    response = client.post(f"{BASE}/create", json=_payload(other_shop))

    assert response.status_code == 201


@pytest.mark.api
def test_invalid_email(client, shop):
    response = client.post(f"{BASE}/create", json=_payload(shop, email="not-an-email"))

    assert response.status_code == 422


@pytest.mark.api
def test_update_and_rate(client, shop, db_session):
    supplier = create_test_supplier(db_session, shop=shop)
    db_session.commit()

    updated = client.put(f"{BASE}/{supplier.id}", json={"city": "Salem", "payment_terms": "net_60"})
    assert updated.status_code == 200
    assert updated.json()["city"] == "Salem"
    assert updated.json()["payment_terms"] == "net_60"

    rated = client.put(f"{BASE}/{supplier.id}/rating", json={"rating": 5})
    assert rated.status_code == 200
    assert rated.json()["rating"] == 5

    assert client.put(f"{BASE}/{supplier.id}/rating", json={"rating": 6}).status_code == 422


@pytest.mark.api
def test_delete_is_soft(client, shop, db_session):
    supplier = create_test_supplier(db_session, shop=shop)
    db_session.commit()

    response = client.delete(f"{BASE}/{supplier.id}")

    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert db_session.query(Supplier).count() == 1

    listed = client.get(f"{BASE}/list", params={"shop_id": shop.id}).json()
    assert listed["pagination"]["total_items"] == 0
    all_suppliers = client.get(f"{BASE}/list", params={"shop_id": shop.id, "active_only": False}).json()
    assert all_suppliers["pagination"]["total_items"] == 1


@pytest.mark.api
def test_list_search(client, shop, db_session):
    create_test_supplier(db_session, shop=shop, name="Alpha Foods")
    create_test_supplier(db_session, shop=shop, name="Beta Tools")
    db_session.commit()

    data = client.get(f"{BASE}/list", params={"shop_id": shop.id, "search": "tool"}).json()

    assert [s["name"] for s in data["items"]] == ["Beta Tools"]


@pytest.mark.api
def test_get_missing_supplier(client):
    response = client.get(f"{BASE}/404")

    assert response.status_code == 404
    assert response.json()["details"] == {"resource": "Supplier", "resource_id": "404"}
