import pytest
from fastapi.testclient import TestClient

from main import app
from splitledger.deps import get_ledger


@pytest.fixture
def client(ledger):
    app.dependency_overrides[get_ledger] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestAccountsApi:
    def test_create_find_and_duplicate(self, client):
        response = client.post("/accounts", json={"owner_id": "U1", "related_id": "U2"})
        assert response.status_code == 201
        account = response.json()
        assert account["balance"] == 0

        found = client.get("/accounts/find", params={"owner_id": "U2", "related_id": "U1"})
        assert found.json()["id"] == account["id"]

        duplicate = client.post("/accounts", json={"owner_id": "U2", "related_id": "U1"})
        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "AlreadyExists"

    def test_transactions_settle_and_history(self, client):
        account = client.post("/accounts", json={"owner_id": "U1", "related_id": "U2"}).json()
        url = f"/accounts/{account['id']}"

        response = client.post(
            f"{url}/transactions", json={"user_id": "U1", "op": "add", "amount": 1.56}
        )
        assert response.status_code == 201
        assert response.json()["amount"] == 2
        assert client.get(url).json()["balance"] == 2

        settled = client.post(f"{url}/settle", json={"user_id": "U2"})
        assert settled.json()["op"] == "subtract"
        assert client.get(url).json()["balance"] == 0

        again = client.post(f"{url}/settle", json={"user_id": "U2"})
        assert again.status_code == 409
        assert again.json()["error"] == "NoOp"

        history = client.get(f"{url}/history", params={"limit": 1}).json()
        assert len(history) == 1

    def test_negative_amount_is_rejected(self, client):
        account = client.post("/accounts", json={"owner_id": "U1", "related_id": "U2"}).json()
        response = client.post(
            f"/accounts/{account['id']}/transactions",
            json={"user_id": "U1", "op": "add", "amount": -3},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidArgument"

    def test_missing_account(self, client):
        response = client.get("/accounts/missing")
        assert response.status_code == 404
        assert response.json()["details"] == {"kind": "Account", "id": "missing"}

        assert client.delete("/accounts/missing").status_code == 404


class TestRequestsApi:
    def test_split_amend_and_status(self, client):
        response = client.post(
            "/requests",
            json={"creator_id": "O", "related_ids": ["A", "B", "C"], "amount": 30},
        )
        assert response.status_code == 201
        request = response.json()
        assert request["owner_id"] == "O"
        assert len(request["transaction_ids"]) == 3

        client.patch(f"/requests/{request['id']}", json={"description": "Lunch"})
        amended = client.post(f"/requests/{request['id']}/receipts", json={"receipt_id": "r1"})
        assert amended.json()["description"] == "Lunch"
        assert amended.json()["receipt_ids"] == ["r1"]

        listed = client.get("/requests", params={"owner_id": "O"}).json()
        assert [r["id"] for r in listed] == [request["id"]]

        status = client.get("/users/O/status").json()
        assert status["total"] == 30
        assert {e["direction"] for e in status["entries"]} == {"owes_you"}

        accounts = client.get("/accounts", params={"user_id": "O"}).json()
        history = client.get(f"/accounts/{accounts[0]['id']}/history").json()
        assert history[0]["description"] == "Lunch"

    def test_self_referential_request(self, client):
        response = client.post(
            "/requests", json={"creator_id": "O", "related_ids": ["O"], "amount": 10}
        )
        assert response.status_code == 400

    def test_unknown_request(self, client):
        assert client.get("/requests/missing").status_code == 404


class TestCurrencyApi:
    def test_convert_and_refresh(self, client):
        response = client.get(
            "/currency/convert", params={"from_code": "USD", "to_code": "EUR", "amount": 10}
        )
        assert response.json()["converted"] == pytest.approx(8)

        refreshed = client.put("/currency/rates", json={"base": "USD", "rates": {"EUR": 0.5}})
        assert refreshed.status_code == 200
        assert refreshed.json()["rates"] == {"EUR": 0.5, "USD": 1.0}

        response = client.get(
            "/currency/convert", params={"from_code": "USD", "to_code": "EUR", "amount": 10}
        )
        assert response.json()["converted"] == pytest.approx(5)

    def test_unknown_currency(self, client):
        response = client.get(
            "/currency/convert", params={"from_code": "USD", "to_code": "ZZZ", "amount": 10}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "UnknownCurrency"

    def test_symbol(self, client):
        assert client.get("/currency/symbol", params={"text": "€12"}).json()["code"] == "EUR"
