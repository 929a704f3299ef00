import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from smartfootball.config import ConfigurationError, Settings, get_settings
from smartfootball.database import DatabasePool, StoreUnavailableError, get_pool
from smartfootball.schemas.runs import GenerationSummary, HourlyRunResponse, ResolutionSummary
from smartfootball.services import runs
from smartfootball.services.prediction_generator import EstimateSource
from smartfootball.utils.openai_client import OpenAIClient

logger = logging.getLogger(__name__)


def verify_cron_secret(
    x_cron_secret: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    if settings.cron_secret and x_cron_secret != settings.cron_secret:
        raise HTTPException(status_code=401, detail="Unauthorized")


async def get_model_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[EstimateSource, None]:
    try:
        client = OpenAIClient.from_settings(settings)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    try:
        yield client
    finally:
        await client.close()


router = APIRouter(
    prefix="/api/v1/runs", tags=["runs"], dependencies=[Depends(verify_cron_secret)]
)


@router.post("/generate-predictions", response_model=GenerationSummary)
async def generate_predictions(
    fixture_id: int | None = Query(None),
    pool: DatabasePool = Depends(get_pool),
    settings: Settings = Depends(get_settings),
    model_client: EstimateSource = Depends(get_model_client),
):
    try:
        return await runs.run_generation(pool, settings, model_client, fixture_id)
    except (ConfigurationError, StoreUnavailableError) as exc:
        logger.error("generate-predictions failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.post("/resolve-predictions", response_model=ResolutionSummary)
async def resolve_predictions(
    pool: DatabasePool = Depends(get_pool),
    settings: Settings = Depends(get_settings),
):
    try:
        return await runs.run_resolution(pool, settings)
    except (ConfigurationError, StoreUnavailableError) as exc:
        logger.error("resolve-predictions failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.post("/hourly", response_model=HourlyRunResponse)
async def hourly(
    pool: DatabasePool = Depends(get_pool),
    settings: Settings = Depends(get_settings),
):
    return await runs.run_hourly(pool, settings)
