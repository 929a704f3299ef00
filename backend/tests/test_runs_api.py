"""HTTP surface: run triggers, status codes and the accuracy read endpoint."""

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import func, select

from smartfootball.config import get_settings
from smartfootball.database import DatabasePool
from smartfootball.main import app
from smartfootball.models import Prediction
from smartfootball.routers.runs import get_model_client

from conftest import FakeModelClient, add_fixtures, make_fixture


@pytest_asyncio.fixture
async def client(pool, test_settings, model_client):
    app.state.pool = pool
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_model_client] = lambda: model_client
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


class TestGeneratePredictions:
    @pytest.mark.asyncio
    async def test_summary_reports_counts(self, client, db):
        await add_fixtures(db, make_fixture(555))

        response = await client.post("/api/v1/runs/generate-predictions")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["generated"] == 1
        assert body["skipped"] == 0
        assert body["results"][0]["fixture_id"] == 555
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_partial_failures_still_return_200(self, client, db, model_client):
        model_client.responses[2] = {"homeXG": None}
        await add_fixtures(db, make_fixture(1), make_fixture(2))

        response = await client.post("/api/v1/runs/generate-predictions")

        assert response.status_code == 200
        assert response.json()["generated"] == 1
        assert response.json()["skipped"] == 1

    @pytest.mark.asyncio
    async def test_single_fixture_mode(self, client, db, model_client):
        await add_fixtures(db, make_fixture(1), make_fixture(2))

        response = await client.post("/api/v1/runs/generate-predictions", params={"fixture_id": 2})

        assert response.json()["generated"] == 1
        assert model_client.calls == [2]

    @pytest.mark.asyncio
    async def test_missing_api_key_returns_500(self, client, test_settings, db):
        del app.dependency_overrides[get_model_client]
        test_settings.openai_api_key = ""
        await add_fixtures(db, make_fixture(1))

        response = await client.post("/api/v1/runs/generate-predictions")

        assert response.status_code == 500
        assert "OPENAI_API_KEY" in response.json()["detail"]
        count = (await db.execute(select(func.count(Prediction.id)))).scalar_one()
        assert count == 0

    @pytest.mark.asyncio
    async def test_unreachable_store_returns_500(self, client, tmp_path):
        app.state.pool = DatabasePool(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'x.db'}")

        response = await client.post("/api/v1/runs/resolve-predictions")

        assert response.status_code == 500
        assert "unreachable" in response.json()["detail"]


class TestCronSecret:
    @pytest.mark.asyncio
    async def test_wrong_secret_is_rejected(self, client, test_settings):
        test_settings.cron_secret = "s3cret"

        response = await client.post("/api/v1/runs/resolve-predictions")
        assert response.status_code == 401

        response = await client.post(
            "/api/v1/runs/resolve-predictions", headers={"X-Cron-Secret": "s3cret"}
        )
        assert response.status_code == 200


class TestHourly:
    @pytest.mark.asyncio
    async def test_generation_then_resolution(self, client, db, test_settings, monkeypatch):
        fake = FakeModelClient()
        monkeypatch.setattr(
            "smartfootball.services.runs.OpenAIClient.from_settings", lambda settings: fake
        )
        await add_fixtures(db, make_fixture(1))

        response = await client.post("/api/v1/runs/hourly")

        assert response.status_code == 200
        steps = response.json()["steps"]
        assert [s["step"] for s in steps] == ["generatePredictions", "resolvePredictions"]
        assert steps[0] == {
            "step": "generatePredictions",
            "status": 200,
            "generated": 1,
            "resolved": None,
            "error": None,
        }
        assert steps[1]["status"] == 200
        assert fake.calls == [1]

    @pytest.mark.asyncio
    async def test_failed_generation_does_not_block_resolution(self, client, test_settings):
        test_settings.openai_api_key = ""

        response = await client.post("/api/v1/runs/hourly")

        steps = response.json()["steps"]
        assert steps[0]["status"] == 500
        assert "OPENAI_API_KEY" in steps[0]["error"]
        assert steps[1]["status"] == 200


class TestAccuracyEndpoint:
    @pytest.mark.asyncio
    async def test_overview_after_resolution(self, client, db):
        from smartfootball.services.accuracy_ledger import AccuracyLedger

        ledger = AccuracyLedger(db)
        for correct in (True, True, False):
            await ledger.record_result("2026-W08", "Premier League", correct)
        await db.commit()

        response = await client.get("/api/v1/accuracy", params={"weeks": 4})

        assert response.status_code == 200
        body = response.json()
        assert body["overall"] == {"total": 3, "correct": 2, "accuracy_pct": 66.7}
        assert body["weekly_trend"][0]["week"] == "2026-W08"
        assert body["by_competition"][0]["competition"] == "Premier League"

    @pytest.mark.asyncio
    async def test_weeks_must_be_positive(self, client):
        response = await client.get("/api/v1/accuracy", params={"weeks": 0})
        assert response.status_code == 422


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"status": "ok"}
