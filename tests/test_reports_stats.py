from decimal import Decimal

from tests.recon_helpers import (
    auth_headers,
    base_directory,
    cash_receipt,
    create_admin,
    login,
    push,
    reconciliation,
)


def _headers(client, db_session):
    create_admin(db_session)
    return auth_headers(login(client))


def test_stats_on_empty_store_are_zero_not_null(client, db_session):
    headers = _headers(client, db_session)

    response = client.get("/api/stats", headers=headers)
    assert response.status_code == 200
    payload = response.json()
    assert payload["totalReconciliations"] == 0
    for key in ("totalReceipts", "totalSales", "totalCash"):
        assert payload[key] is not None
        assert Decimal(payload[key]) == Decimal("0")


def test_stats_aggregate_matching_reconciliations(client, db_session):
    headers = _headers(client, db_session)
    batch = {
        **base_directory(),
        "reconciliations": [
            reconciliation(1, cashier_id=1, status="completed", system_sales="100.10", total_receipts="90.05"),
            reconciliation(2, cashier_id=2, status="completed", system_sales="50.00", total_receipts="60.00"),
            reconciliation(3, cashier_id=1, status="draft", system_sales="10.00", total_receipts="10.00"),
        ],
        "cashReceipts": [
            cash_receipt(20, 1, amount="40.05"),
            cash_receipt(21, 1, amount="10.00"),
            cash_receipt(22, 2, amount="60.00"),
            cash_receipt(23, 3, amount="10.00"),
        ],
    }
    assert push(client, batch).status_code == 200

    payload = client.get("/api/stats", headers=headers, params={"status": "completed"}).json()
    assert payload["totalReconciliations"] == 2
    assert Decimal(payload["totalReceipts"]) == Decimal("150.05")
    assert Decimal(payload["totalSales"]) == Decimal("150.10")
    assert Decimal(payload["totalCash"]) == Decimal("110.05")

    branch_only = client.get("/api/stats", headers=headers, params={"branchId": 5}).json()
    assert branch_only["totalReconciliations"] == 2
    assert Decimal(branch_only["totalCash"]) == Decimal("60.05")


def test_stats_filter_without_matches(client, db_session):
    headers = _headers(client, db_session)
    assert push(client, {**base_directory(), "reconciliations": [reconciliation(1)]}).status_code == 200

    payload = client.get("/api/stats", headers=headers, params={"dateFrom": "2030-01-01"}).json()
    assert payload["totalReconciliations"] == 0
    assert Decimal(payload["totalCash"]) == Decimal("0")
