"""Route tests through FastAPI's TestClient."""

import json

import pytest
from fastapi.testclient import TestClient

import import_transactions
from app import app
from tests.conftest import make_option_payload


@pytest.fixture
def client(db_url, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", db_url)
    with TestClient(app) as c:
        yield c


def _vertical():
    return [
        make_option_payload(strike=100.0, qty=1, price=5.00),
        make_option_payload(strike=110.0, qty=-1, price=2.00),
    ]


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["database"] == "sqlite"


class TestImportRoute:
    def test_import_then_list(self, client):
        resp = client.post("/api/import", json={"transactions": _vertical(), "as_of": "2025-03-10"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["new_count"] == 1
        assert body["message"].startswith("Added 1 new positions")

        positions = client.get("/api/positions").json()
        assert positions["count"] == 1
        assert positions["positions"][0]["strategy_label"] == "Bull Call Spread"

    def test_bad_mode_is_400(self, client):
        resp = client.post("/api/import", json={"mode": "merge", "transactions": _vertical()})
        assert resp.status_code == 400

    def test_empty_add_is_400(self, client):
        resp = client.post("/api/import", json={"transactions": []})
        assert resp.status_code == 400
        assert "No option transactions" in resp.json()["detail"]

    def test_missing_ticker_is_422(self, client):
        bad = make_option_payload()
        del bad["ticker"]
        resp = client.post("/api/import", json={"transactions": [bad]})
        assert resp.status_code == 422


class TestClosingPricesRoute:
    def test_closing_prices(self, client):
        closes = [
            make_option_payload(strike=100.0, qty=-3, price=2.50) | {"txn_type": "Sold To Close"},
            make_option_payload(strike=100.0, qty=-1, price=3.50) | {"txn_type": "Sold To Close"},
        ]
        resp = client.post("/api/closing-prices", json={"transactions": closes, "as_of": "2025-03-10"})
        assert resp.status_code == 200
        assert resp.json()["closing_prices"] == {"AAPL|2025-03-21|100|Call": 2.75}


class TestCli:
    def test_import_file(self, db_url, tmp_path, capsys):
        path = tmp_path / "batch.json"
        path.write_text(json.dumps(_vertical()))

        assert import_transactions.main([str(path), "--db", db_url]) == 0
        assert "Added 1 new positions" in capsys.readouterr().out

    def test_rebuild_flag(self, db_url, tmp_path, capsys):
        path = tmp_path / "batch.json"
        path.write_text(json.dumps({"transactions": _vertical(), "cash_balance": 500.0}))

        assert import_transactions.main([str(path), "--mode", "rebuild", "--db", db_url]) == 0
        assert "Rebuilt portfolio with 2 positions." in capsys.readouterr().out

    def test_unreadable_file(self, tmp_path):
        assert import_transactions.main([str(tmp_path / "missing.json")]) == 1
