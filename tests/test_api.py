from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app


def make_client() -> TestClient:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def override_get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


def test_month_report_and_opening_balance_round_trip() -> None:
    client = make_client()
    headers = {"X-Profile-Id": "api-test"}
    try:
        categories = client.get("/api/categories", headers=headers).json()
        food = next(c for c in categories if c["name"] == "Food")
        salary = next(c for c in categories if c["name"] == "Salary")

        for payload in (
            {
                "date": "2024-03-05",
                "kind": "EXPENSE",
                "amount_cents": 500,
                "category_id": food["id"],
            },
            {
                "date": "2024-03-10",
                "kind": "INCOME",
                "amount_cents": 1000,
                "category_id": salary["id"],
            },
        ):
            resp = client.post("/api/entries", json=payload, headers=headers)
            assert resp.status_code == 201, resp.text

        resp = client.put(
            "/api/opening-balances/2024/2",
            json=[
                {"source": "Cash", "amount_cents": 1000},
                {"source": "Bank", "amount_cents": 5000},
            ],
            headers=headers,
        )
        assert resp.status_code == 200
        feb_ids = {e["id"] for e in resp.json()["entries"]}

        drafts = client.post(
            "/api/opening-balances/2024/3/carry-forward", headers=headers
        ).json()["entries"]
        assert sum(d["amount_cents"] for d in drafts) == 6000
        assert feb_ids.isdisjoint({d["id"] for d in drafts})

        client.put("/api/opening-balances/2024/3", json=drafts, headers=headers)

        month = client.get("/api/months/2024/3", headers=headers).json()
        assert month["total_income"] == 1000
        assert month["total_expense"] == 500
        assert month["balance"] == 500
        assert month["opening_balance"] == 6000
        assert month["closing_balance"] == 6500
        assert month["category_breakdown"] == [
            {"name": "Food", "value": 500, "color": "#f97316"}
        ]
        assert [e["date"] for e in month["entries"]] == ["2024-03-10", "2024-03-05"]

        insights = client.get("/api/insights/2024/3", headers=headers).json()
        assert insights["has_data"] is True
        assert insights["health"] == "EXCELLENT"
        assert insights["months_with_data"] == [3]
    finally:
        app.dependency_overrides.clear()


def test_errors_map_to_http_status_codes() -> None:
    client = make_client()
    try:
        resp = client.post(
            "/api/entries",
            json={
                "date": date(2024, 3, 5).isoformat(),
                "kind": "EXPENSE",
                "amount_cents": 10,
                "category_id": 424242,
            },
        )
        assert resp.status_code == 404

        resp = client.post(
            "/api/entries",
            json={
                "date": "2024-03-05",
                "kind": "EXPENSE",
                "amount_cents": -1,
                "category_id": 1,
            },
        )
        assert resp.status_code == 422

        assert client.get("/api/insights/2024/13").status_code == 422
        assert client.get("/api/stats?period=DECADE").status_code == 422
        assert client.delete("/api/categories/999").status_code == 404
    finally:
        app.dependency_overrides.clear()


def test_repeated_opening_balance_ids_are_rejected() -> None:
    client = make_client()
    try:
        resp = client.put(
            "/api/opening-balances/2024/3",
            json=[
                {"id": "x", "source": "Cash", "amount_cents": 100},
                {"id": "x", "source": "Bank", "amount_cents": 200},
            ],
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Duplicate opening balance id"

        resp = client.get("/api/opening-balances/2024/3")
        assert resp.json()["entries"] == []
        assert resp.json()["total_cents"] == 0
    finally:
        app.dependency_overrides.clear()


def test_entry_list_accepts_filter_parameters() -> None:
    client = make_client()
    headers = {"X-Profile-Id": "filters"}
    try:
        categories = client.get("/api/categories", headers=headers).json()
        food = next(c for c in categories if c["name"] == "Food")
        for description, mode, amount in (
            ("Coffee", "UPI", 450),
            ("Dinner", "CARD", 3200),
        ):
            resp = client.post(
                "/api/entries",
                json={
                    "date": "2024-03-05",
                    "kind": "EXPENSE",
                    "amount_cents": amount,
                    "category_id": food["id"],
                    "description": description,
                    "payment_mode": mode,
                },
                headers=headers,
            )
            assert resp.status_code == 201, resp.text

        def listed(params: dict) -> list:
            resp = client.get("/api/entries", params=params, headers=headers)
            assert resp.status_code == 200, resp.text
            return [e["description"] for e in resp.json()]

        assert listed({"q": "coff"}) == ["Coffee"]
        assert listed({"payment_mode": "CARD"}) == ["Dinner"]
        assert listed({"min_amount": 1000}) == ["Dinner"]
        assert listed({"kind": "INCOME"}) == []
        custom = {"preset": "CUSTOM", "custom_date": "2024-03-05"}
        assert sorted(listed(custom)) == ["Coffee", "Dinner"]
        assert listed({"preset": "CUSTOM", "custom_date": "2024-03-06"}) == []
        assert client.get(
            "/api/entries", params={"preset": "FORTNIGHT"}, headers=headers
        ).status_code == 422
    finally:
        app.dependency_overrides.clear()
