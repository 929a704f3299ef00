from datetime import timedelta
from typing import Any

import pytest
import pytest_asyncio

from smartfootball.config import Settings
from smartfootball.database import DatabasePool
from smartfootball.models import Fixture
from smartfootball.utils.openai_client import ModelServiceError
from smartfootball.utils.timeutils import utcnow

GOOD_ESTIMATE = {
    "homeXG": 1.5,
    "awayXG": 1.1,
    "predictedWinner": "home",
    "confidenceScore": 68,
    "keyFacts": ["Home side unbeaten in five", "Away side concede late"],
    "analysis": "Our model predicts a narrow home win.",
    "seoTitle": "Arsenal vs Chelsea Prediction",
    "metaDescription": "Arsenal host Chelsea in the Premier League.",
}


class FakeModelClient:
    """Stands in for OpenAIClient. Responses are keyed by fixture external_id."""

    def __init__(self, responses: dict[int, Any] | None = None, default: Any = GOOD_ESTIMATE):
        self.responses = responses or {}
        self.default = default
        self.calls: list[int] = []

    async def request_estimate(self, fixture: Fixture) -> dict[str, Any]:
        self.calls.append(fixture.external_id)
        response = self.responses.get(fixture.external_id, self.default)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        pass


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        openai_api_key="test-key",
        model_call_interval_seconds=0.0,
        scheduler_enabled=False,
        cron_secret="",
    )


@pytest_asyncio.fixture
async def pool(test_settings):
    pool = DatabasePool.from_settings(test_settings)
    await pool.create_schema()
    yield pool
    await pool.dispose()


@pytest_asyncio.fixture
async def db(pool):
    async with pool.session() as session:
        yield session


@pytest.fixture
def model_client() -> FakeModelClient:
    return FakeModelClient()


@pytest.fixture
def failing_client() -> FakeModelClient:
    return FakeModelClient(default=ModelServiceError("OpenAI returned HTTP 429"))


def make_fixture(external_id: int = 555, **overrides) -> Fixture:
    values = {
        "external_id": external_id,
        "slug": f"arsenal-vs-chelsea-{external_id}",
        "home_team": "Arsenal",
        "away_team": "Chelsea",
        "competition_name": "Premier League",
        "competition_country": "England",
        "kickoff_time": utcnow() + timedelta(hours=2),
        "status": "NS",
    }
    values.update(overrides)
    return Fixture(**values)


async def add_fixtures(db, *fixtures: Fixture) -> None:
    db.add_all(fixtures)
    await db.commit()
