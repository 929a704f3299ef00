from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from smartfootball.config import Settings, get_settings
from smartfootball.database import get_db
from smartfootball.schemas.accuracy import AccuracyOverviewResponse
from smartfootball.services.accuracy_ledger import AccuracyLedger

router = APIRouter(prefix="/api/v1/accuracy", tags=["accuracy"])


@router.get("", response_model=AccuracyOverviewResponse)
async def get_accuracy_overview(
    weeks: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    weeks = min(weeks or settings.accuracy_default_weeks, settings.accuracy_max_weeks)
    ledger = AccuracyLedger(db, settings.min_competition_sample)
    return await ledger.overview(weeks=weeks)
