from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.main import app


def _post(client, **overrides):
    body = {"type": "expense", "amount": 120.5, "category": "Food", "date": "2024-05-03", "note": "groceries"}
    body.update(overrides)
    return client.post("/api/transactions", json=body)


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    response = client.get("/api/health")
    assert response.json()["status"] == "healthy"


def test_status_reports_dynamodb(client, fake_table):
    assert client.get("/api/status").json()["overall_status"] == "healthy"
    fake_table.fail_reads = True
    body = client.get("/api/status").json()
    assert body["overall_status"] == "degraded"
    assert body["services"]["dynamodb"]["status"] == "error"


def test_create_and_list_transactions(client):
    first = _post(client, date="2024-04-01")
    assert first.status_code == 201
    created = first.json()["transaction"]
    assert created["id"]
    assert created["type"] == "expense"
    assert created["note"] == "groceries"

    _post(client, type="income", amount=1000, category="Salary", date="2024-05-01")

    listed = client.get("/api/transactions").json()["transactions"]
    assert [tx["date"] for tx in listed] == ["2024-05-01", "2024-04-01"]


def test_create_rejects_invalid_payloads(client):
    assert _post(client, amount=0).status_code == 422
    assert _post(client, amount=-5).status_code == 422
    assert _post(client, category="   ").status_code == 422
    assert _post(client, date="2024-02-30").status_code == 422
    assert _post(client, date="05/03/2024").status_code == 422
    assert _post(client, type="transfer").status_code == 422
    assert _post(client, note="x" * 501).status_code == 422
    assert _post(client, note="x" * 500).status_code == 201


def test_store_failures_map_to_503(client, fake_table):
    fake_table.fail_writes = True
    assert _post(client).status_code == 503
    fake_table.fail_reads = True
    assert client.get("/api/transactions").status_code == 503
    assert client.get("/api/summary").status_code == 503


def test_summary_uses_injected_today(client):
    _post(client, type="income", amount=1000, category="Salary", date="2024-05-01")
    _post(client, amount=400, date="2024-05-03")
    _post(client, amount=100, date="2024-04-20")

    body = client.get("/api/summary").json()
    assert body["reference_month"] == "2024-05"
    assert body["totals"] == {"income": 1000, "expenses": 500, "net": 500, "savings_rate": 50}
    assert body["monthly_buckets"][-1] == {"month": "2024-05", "income": 1000, "expenses": 400}
    assert body["monthly_buckets"][-2] == {"month": "2024-04", "income": 0, "expenses": 100}
    assert body["month_over_month"]["income_change"] is None
    assert body["month_over_month"]["expense_change"] == 300
    assert 0 <= body["health_score"] <= 100


def test_summary_as_of_and_months(client):
    _post(client, amount=100, date="2023-01-15")
    body = client.get("/api/summary", params={"as_of": "2023-01-31", "months": 2}).json()
    assert [b["month"] for b in body["monthly_buckets"]] == ["2022-12", "2023-01"]
    assert body["monthly_buckets"][-1]["expenses"] == 100

    assert client.get("/api/summary", params={"months": 0}).status_code == 422
    assert client.get("/api/summary", params={"as_of": "2023-02-30"}).status_code == 422


def test_monthly_trend_endpoint(client):
    buckets = client.get("/api/summary/monthly", params={"months": 12}).json()["buckets"]
    assert len(buckets) == 12
    assert buckets[-1]["month"] == "2024-05"


def test_requests_need_a_bearer_token(store):
    from app.db.store import get_transaction_store

    app.dependency_overrides[get_transaction_store] = lambda: store
    try:
        with TestClient(app) as client:
            assert client.get("/api/transactions").status_code == 401
            bad = client.get("/api/transactions", headers={"Authorization": "Bearer not-a-jwt"})
            assert bad.status_code == 401

            token = create_access_token({"sub": "user-42"})
            headers = {"Authorization": f"Bearer {token}"}
            created = client.post(
                "/api/transactions",
                json={"type": "income", "amount": 10, "category": "Gift", "date": "2024-01-01"},
                headers=headers,
            )
            assert created.status_code == 201
            assert len(client.get("/api/transactions", headers=headers).json()["transactions"]) == 1
    finally:
        app.dependency_overrides.clear()


def test_exhausted_retries_map_to_409(client, fake_table):
    assert _post(client).status_code == 201
    key = next(iter(fake_table.items))

    def bump_version():
        fake_table.items[key]["version"] += 1
        fake_table.before_put = bump_version

    fake_table.before_put = bump_version
    assert _post(client, date="2024-05-04").status_code == 409


def test_amounts_are_bounded(client):
    assert _post(client, amount=1e13).status_code == 422
    assert _post(client, amount=1e308).status_code == 422
    assert _post(client, type="income", amount=1e12).status_code == 201
    assert _post(client, type="income", amount=1e12, date="2024-05-04").status_code == 201

    listed = client.get("/api/transactions").json()["transactions"]
    assert len(listed) == 2
    assert client.get("/api/summary").status_code == 200


def test_run_serves_app_with_uvicorn(monkeypatch):
    import app.main as main

    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    main.run()

    assert calls[0][0] == ("app.main:app",)
    assert calls[0][1]["port"] == main.settings.PORT
