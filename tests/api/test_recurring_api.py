"""
Tests for recurring template endpoints.
"""

from datetime import date

BASE = "/recurring/tenants/1/templates"

RENT = {
    "name": "Office rent",
    "journal_code": "OD",
    "frequency": "MONTHLY",
    "day_of_month": 31,
    "start_date": "2024-01-31",
    "lines": [
        {"account_code": "613", "side": "DEBIT", "amount": "500000.00"},
        {"account_code": "52", "side": "CREDIT", "amount": "500000.00"},
    ],
}


def create_rent(client):
    client.post("/ledger/tenants/1/chart/initialize")
    return client.post(BASE, json=RENT)


class TestTemplates:

    def test_create_returns_201_with_next_date(self, client):
        response = create_rent(client)

        assert response.status_code == 201
        data = response.json()
        next_date = date.fromisoformat(data["next_generation_date"])
        assert next_date > date.today()
        assert data["is_active"] is True

    def test_unbalanced_template_returns_400(self, client):
        client.post("/ledger/tenants/1/chart/initialize")
        payload = {**RENT, "lines": [
            {"account_code": "613", "side": "DEBIT", "amount": "10.00"},
            {"account_code": "52", "side": "CREDIT", "amount": "9.00"},
        ]}

        assert client.post(BASE, json=payload).status_code == 400

    def test_get_from_other_tenant_returns_404(self, client):
        template_id = create_rent(client).json()["id"]

        response = client.get(f"/recurring/tenants/2/templates/{template_id}")

        assert response.status_code == 404

    def test_patch_and_deactivate(self, client):
        template_id = create_rent(client).json()["id"]

        patched = client.patch(f"{BASE}/{template_id}", json={"name": "Warehouse rent"})
        deactivated = client.post(f"{BASE}/{template_id}/deactivate")

        assert patched.json()["name"] == "Warehouse rent"
        assert deactivated.json()["is_active"] is False
        assert client.get(BASE, params={"active_only": True}).json() == []


class TestFire:

    def test_fire_then_duplicate(self, client):
        template_id = create_rent(client).json()["id"]

        first = client.post(f"{BASE}/{template_id}/fire", json={"posting_date": "2024-01-31"})
        second = client.post(f"{BASE}/{template_id}/fire", json={"posting_date": "2024-01-31"})

        assert first.status_code == 201
        assert first.json()["entry_number"] == "OD-2024-00001"
        assert second.status_code == 409
        assert second.json()["detail"]["code"] == "DUPLICATE_FIRE"

        history = client.get(f"{BASE}/{template_id}/history").json()
        assert [h["status"] for h in history] == ["FAILED", "SUCCESS"]
        entries = client.get("/ledger/tenants/1/entries").json()
        assert len(entries) == 1

    def test_fire_unknown_template_returns_404(self, client):
        response = client.post(f"{BASE}/999/fire", json={"posting_date": "2024-01-31"})
        assert response.status_code == 404

    def test_rounded_away_share_returns_400_and_keeps_history(self, client):
        client.post("/ledger/tenants/1/chart/initialize")
        payload = {**RENT, "lines": [
            {"account_code": "613", "side": "DEBIT", "share": "0.001"},
            {"account_code": "616", "side": "DEBIT", "share": "0.999"},
            {"account_code": "52", "side": "CREDIT", "share": "1"},
        ]}
        template_id = client.post(BASE, json=payload).json()["id"]

        response = client.post(
            f"{BASE}/{template_id}/fire",
            json={"posting_date": "2024-01-31", "reference_amount": "1"},
        )

        assert response.status_code == 400
        history = client.get(f"{BASE}/{template_id}/history").json()
        assert [h["status"] for h in history] == ["FAILED"]

    def test_fire_due(self, client):
        created = create_rent(client).json()
        scheduled = created["next_generation_date"]

        response = client.post(f"{BASE}/fire-due", params={"today": scheduled})

        assert response.status_code == 200
        data = response.json()
        assert len(data["generated"]) == 1
        assert data["failed"] == {}
        template = client.get(f"{BASE}/{created['id']}").json()
        assert template["last_generation_date"] == scheduled
        assert template["next_generation_date"] > scheduled

    def test_fire_due_before_next_date_does_nothing(self, client):
        create_rent(client)

        response = client.post(f"{BASE}/fire-due", params={"today": "2024-02-15"})

        assert response.status_code == 200
        assert response.json() == {"generated": [], "failed": {}}
