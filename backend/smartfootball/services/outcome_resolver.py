import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smartfootball.models import Fixture, Prediction
from smartfootball.models.accuracy import UNKNOWN_COMPETITION
from smartfootball.schemas.runs import ResolutionSummary
from smartfootball.services.accuracy_ledger import AccuracyLedger
from smartfootball.utils.timeutils import utcnow, week_key

logger = logging.getLogger(__name__)

PENDING = "pending"
SUPERSEDED = "superseded"
CORRECT = "correct"
INCORRECT = "incorrect"


class FixtureNotFoundError(LookupError):
    pass


def actual_result(goals_home: int, goals_away: int) -> str:
    if goals_home > goals_away:
        return "home"
    if goals_away > goals_home:
        return "away"
    return "draw"


class OutcomeResolver:
    """Moves predictions from pending to resolved once their fixture has finished.

    Resolution is terminal. Each prediction is committed on its own so a
    failure on one does not undo the others, and anything left pending is
    picked up again by the next run.
    """

    def __init__(self, db: AsyncSession, ledger: AccuracyLedger | None = None) -> None:
        self.db = db
        self.ledger = ledger or AccuracyLedger(db)

    async def resolve_pending(self) -> ResolutionSummary:
        result = await self.db.execute(
            select(Prediction.id, Prediction.fixture_id, Prediction.predicted_winner)
            .where(Prediction.is_resolved.is_(False))
            .order_by(Prediction.id)
        )
        pending = result.all()
        summary = ResolutionSummary()

        for row in pending:
            try:
                outcome = await self._resolve_one(row.id, row.fixture_id, row.predicted_winner)
            except FixtureNotFoundError:
                logger.warning(
                    "Prediction %d references missing fixture %d", row.id, row.fixture_id
                )
                await self.db.rollback()
                summary.failed += 1
                continue
            except SQLAlchemyError:
                logger.exception("Failed to resolve prediction %d", row.id)
                await self.db.rollback()
                summary.failed += 1
                continue

            if outcome == PENDING:
                summary.pending += 1
            elif outcome in (CORRECT, INCORRECT):
                summary.resolved += 1
                if outcome == CORRECT:
                    summary.correct += 1

        summary.current_week_accuracy = await self.ledger.week_accuracy(week_key(utcnow()))
        logger.info(
            "Resolved %d predictions (%d correct), %d pending, %d failed",
            summary.resolved,
            summary.correct,
            summary.pending,
            summary.failed,
        )
        return summary

    async def _resolve_one(
        self, prediction_id: int, fixture_id: int, predicted_winner: str
    ) -> str:
        fixture = (
            await self.db.execute(select(Fixture).where(Fixture.external_id == fixture_id))
        ).scalar_one_or_none()
        if fixture is None:
            raise FixtureNotFoundError(fixture_id)

        if not fixture.is_finished:
            return PENDING
        # A finished fixture without both scores is not resolvable yet
        if fixture.goals_home is None or fixture.goals_away is None:
            return PENDING

        result = actual_result(fixture.goals_home, fixture.goals_away)
        correct = predicted_winner == result
        now = utcnow()

        transition = await self.db.execute(
            update(Prediction)
            .where(Prediction.id == prediction_id, Prediction.is_resolved.is_(False))
            .values(
                is_resolved=True,
                actual_result=result,
                prediction_correct=correct,
                actual_goals_home=fixture.goals_home,
                actual_goals_away=fixture.goals_away,
                resolved_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if transition.rowcount != 1:
            # Another run resolved it between our read and this update
            await self.db.rollback()
            logger.info("Prediction %d was already resolved", prediction_id)
            return SUPERSEDED

        await self.ledger.record_result(
            week_key(fixture.kickoff_time),
            fixture.competition_name or UNKNOWN_COMPETITION,
            correct,
        )
        await self.db.commit()
        return CORRECT if correct else INCORRECT
