import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smartfootball.database import dialect_insert
from smartfootball.models import AccuracyRecord
from smartfootball.models.accuracy import KIND_COMPETITION, KIND_OVERALL
from smartfootball.schemas.accuracy import (
    AccuracyOverviewResponse,
    AccuracyTotals,
    CompetitionAccuracyItem,
    WeeklyAccuracyPoint,
)
from smartfootball.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def _pct(correct: int, total: int) -> float:
    return round(correct / total * 100, 1) if total > 0 else 0.0


class AccuracyLedger:
    def __init__(self, db: AsyncSession, min_competition_sample: int = 3) -> None:
        self.db = db
        self.min_competition_sample = min_competition_sample

    async def record_result(self, week_key: str, competition: str, correct: bool) -> None:
        """Count one resolved prediction in the week's overall and competition buckets."""
        await self._increment(week_key, KIND_OVERALL, "", correct)
        await self._increment(week_key, KIND_COMPETITION, competition, correct)

    async def _increment(self, week_key: str, kind: str, competition: str, correct: bool) -> None:
        # Single statement so concurrent resolvers never lose an update
        stmt = dialect_insert(self.db, AccuracyRecord).values(
            week_key=week_key,
            kind=kind,
            competition=competition,
            total=1,
            correct=1 if correct else 0,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["week_key", "kind", "competition"],
            set_={
                "total": AccuracyRecord.total + stmt.excluded.total,
                "correct": AccuracyRecord.correct + stmt.excluded.correct,
                "updated_at": utcnow(),
            },
        )
        await self.db.execute(stmt)

    async def week_accuracy(self, week_key: str) -> float | None:
        result = await self.db.execute(
            select(AccuracyRecord.total, AccuracyRecord.correct).where(
                AccuracyRecord.week_key == week_key,
                AccuracyRecord.kind == KIND_OVERALL,
            )
        )
        row = result.one_or_none()
        if row is None or row.total == 0:
            return None
        return _pct(row.correct, row.total)

    async def weekly_trend(self, weeks: int = 8) -> list[WeeklyAccuracyPoint]:
        result = await self.db.execute(
            select(AccuracyRecord.week_key, AccuracyRecord.total, AccuracyRecord.correct)
            .where(AccuracyRecord.kind == KIND_OVERALL)
            .order_by(AccuracyRecord.week_key.desc())
            .limit(weeks)
        )
        return [
            WeeklyAccuracyPoint(
                week=row.week_key,
                total=row.total,
                correct=row.correct,
                accuracy_pct=_pct(row.correct, row.total),
            )
            for row in result.all()
        ]

    async def competition_totals(self) -> list[CompetitionAccuracyItem]:
        """All-time totals per competition, unfiltered, sorted by name."""
        result = await self.db.execute(
            select(
                AccuracyRecord.competition,
                func.sum(AccuracyRecord.total).label("total"),
                func.sum(AccuracyRecord.correct).label("correct"),
            )
            .where(AccuracyRecord.kind == KIND_COMPETITION)
            .group_by(AccuracyRecord.competition)
            .order_by(AccuracyRecord.competition)
        )
        return [
            CompetitionAccuracyItem(
                competition=row.competition,
                total=row.total or 0,
                correct=row.correct or 0,
                accuracy_pct=_pct(row.correct or 0, row.total or 0),
            )
            for row in result.all()
        ]

    async def overview(self, weeks: int = 8) -> AccuracyOverviewResponse:
        competitions = await self.competition_totals()

        total = sum(item.total for item in competitions)
        correct = sum(item.correct for item in competitions)

        # Small samples give meaningless percentages
        reported = [
            item for item in competitions if item.total >= self.min_competition_sample
        ]
        reported.sort(key=lambda item: item.accuracy_pct, reverse=True)

        return AccuracyOverviewResponse(
            overall=AccuracyTotals(
                total=total, correct=correct, accuracy_pct=_pct(correct, total)
            ),
            weekly_trend=await self.weekly_trend(weeks),
            by_competition=reported,
        )
