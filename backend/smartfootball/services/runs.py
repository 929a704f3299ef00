import logging

from smartfootball.config import ConfigurationError, Settings
from smartfootball.database import DatabasePool, StoreUnavailableError
from smartfootball.schemas.runs import (
    GenerationSummary,
    HourlyRunResponse,
    ResolutionSummary,
    RunStep,
)
from smartfootball.services.accuracy_ledger import AccuracyLedger
from smartfootball.services.outcome_resolver import OutcomeResolver
from smartfootball.services.prediction_generator import EstimateSource, PredictionGenerator
from smartfootball.utils.openai_client import OpenAIClient
from smartfootball.utils.rate_limit import MinIntervalPacer

logger = logging.getLogger(__name__)

# Raised before any per-item work; the whole run fails
RUN_LEVEL_ERRORS = (ConfigurationError, StoreUnavailableError)


async def run_generation(
    pool: DatabasePool,
    settings: Settings,
    model_client: EstimateSource,
    fixture_id: int | None = None,
) -> GenerationSummary:
    await pool.ensure_alive()
    async with pool.session() as db:
        generator = PredictionGenerator(
            db,
            model_client,
            horizon_hours=settings.prediction_horizon_hours,
            batch_limit=settings.prediction_batch_limit,
            call_timeout=settings.openai_timeout_seconds,
            pacer=MinIntervalPacer(settings.model_call_interval_seconds),
        )
        return await generator.generate(fixture_id)


async def run_resolution(pool: DatabasePool, settings: Settings) -> ResolutionSummary:
    await pool.ensure_alive()
    async with pool.session() as db:
        ledger = AccuracyLedger(db, settings.min_competition_sample)
        return await OutcomeResolver(db, ledger).resolve_pending()


async def run_hourly(
    pool: DatabasePool,
    settings: Settings,
    model_client: EstimateSource | None = None,
) -> HourlyRunResponse:
    """Generation then resolution. A failed step is reported, not raised."""
    steps: list[RunStep] = []

    owns_client = model_client is None
    try:
        if model_client is None:
            model_client = OpenAIClient.from_settings(settings)
        summary = await run_generation(pool, settings, model_client)
        steps.append(RunStep(step="generatePredictions", status=200, generated=summary.generated))
    except RUN_LEVEL_ERRORS as exc:
        logger.error("generatePredictions step failed: %s", exc)
        steps.append(RunStep(step="generatePredictions", status=500, error=str(exc)))
    except Exception as exc:
        logger.exception("generatePredictions step failed")
        steps.append(RunStep(step="generatePredictions", status=500, error=str(exc)))
    finally:
        if owns_client and isinstance(model_client, OpenAIClient):
            await model_client.close()

    try:
        summary = await run_resolution(pool, settings)
        steps.append(RunStep(step="resolvePredictions", status=200, resolved=summary.resolved))
    except RUN_LEVEL_ERRORS as exc:
        logger.error("resolvePredictions step failed: %s", exc)
        steps.append(RunStep(step="resolvePredictions", status=500, error=str(exc)))
    except Exception as exc:
        logger.exception("resolvePredictions step failed")
        steps.append(RunStep(step="resolvePredictions", status=500, error=str(exc)))

    return HourlyRunResponse(steps=steps)
