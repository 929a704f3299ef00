import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smartfootball.database import dialect_insert
from smartfootball.models import Fixture, Prediction
from smartfootball.models.fixture import SCHEDULED_STATUS
from smartfootball.schemas.runs import GeneratedMatch, GenerationSummary
from smartfootball.services.estimate import EstimateRejected, MatchEstimate, parse_estimate
from smartfootball.services.scoreline import OutcomeProbabilities, match_probabilities
from smartfootball.utils.openai_client import ModelServiceError
from smartfootball.utils.rate_limit import MinIntervalPacer
from smartfootball.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


class EstimateSource(Protocol):
    async def request_estimate(self, fixture: Fixture) -> dict[str, Any]: ...


class PredictionGenerator:
    def __init__(
        self,
        db: AsyncSession,
        model_client: EstimateSource,
        *,
        horizon_hours: int = 48,
        batch_limit: int = 20,
        call_timeout: float = 30.0,
        pacer: MinIntervalPacer | None = None,
    ) -> None:
        self.db = db
        self.model_client = model_client
        self.horizon = timedelta(hours=horizon_hours)
        self.batch_limit = batch_limit
        self.call_timeout = call_timeout
        self.pacer = pacer or MinIntervalPacer(interval=2.0)

    async def select_eligible(
        self, fixture_id: int | None = None, now: datetime | None = None
    ) -> list[Fixture]:
        """Scheduled fixtures without a prediction.

        With ``fixture_id`` the kickoff window is not applied.
        """
        now = now or utcnow()
        predicted_ids = select(Prediction.fixture_id).scalar_subquery()

        query = select(Fixture).where(
            Fixture.status == SCHEDULED_STATUS,
            Fixture.external_id.notin_(predicted_ids),
        )
        if fixture_id is not None:
            query = query.where(Fixture.external_id == fixture_id)
        else:
            query = query.where(
                Fixture.kickoff_time >= now,
                Fixture.kickoff_time <= now + self.horizon,
            )
        query = query.order_by(Fixture.kickoff_time).limit(self.batch_limit)

        result = await self.db.execute(query)
        fixtures = list(result.scalars().all())
        # Detached so a rollback after one failed fixture does not expire the rest
        for fixture in fixtures:
            self.db.expunge(fixture)
        return fixtures

    async def generate(
        self, fixture_id: int | None = None, now: datetime | None = None
    ) -> GenerationSummary:
        fixtures = await self.select_eligible(fixture_id, now=now)
        summary = GenerationSummary()

        if not fixtures:
            logger.info("No fixtures need predictions")
            return summary

        for fixture in fixtures:
            await self.pacer.wait()
            try:
                generated = await self.predict_fixture(fixture)
            except (ModelServiceError, TimeoutError) as exc:
                logger.warning("Model call failed for %s: %s", fixture.label, exc)
                await self.db.rollback()
                generated = None
            except SQLAlchemyError:
                logger.exception("Could not store prediction for %s", fixture.label)
                await self.db.rollback()
                generated = None

            if generated is None:
                summary.skipped += 1
                continue
            summary.generated += 1
            summary.results.append(generated)

        logger.info(
            "Generated %d predictions, skipped %d, for %d fixtures",
            summary.generated,
            summary.skipped,
            len(fixtures),
        )
        return summary

    async def predict_fixture(self, fixture: Fixture) -> GeneratedMatch | None:
        """Estimate, score and store one fixture.

        Returns None when the estimate is unusable or the stored prediction is
        already resolved.
        """
        raw = await asyncio.wait_for(
            self.model_client.request_estimate(fixture), timeout=self.call_timeout
        )
        estimate = parse_estimate(raw)
        if isinstance(estimate, EstimateRejected):
            logger.warning("Rejected estimate for %s: %s", fixture.label, estimate.reason)
            return None

        probs = match_probabilities(estimate.home_xg, estimate.away_xg)
        winner = probs.predicted_winner
        if estimate.advisory_winner and estimate.advisory_winner != winner:
            logger.info(
                "Model picked %s for %s but probabilities %s favour %s",
                estimate.advisory_winner,
                fixture.label,
                probs.as_dict(),
                winner,
            )

        written = await self._upsert_prediction(self._prediction_values(fixture, estimate, probs))
        await self.db.commit()
        if not written:
            logger.info("Prediction for %s was resolved meanwhile, left unchanged", fixture.label)
            return None

        return GeneratedMatch(
            fixture_id=fixture.external_id,
            match=fixture.label,
            winner=winner,
            home_win_probability=probs.home_win,
            draw_probability=probs.draw,
            away_win_probability=probs.away_win,
            confidence=estimate.confidence_score,
        )

    @staticmethod
    def _prediction_values(
        fixture: Fixture, estimate: MatchEstimate, probs: OutcomeProbabilities
    ) -> dict[str, Any]:
        return {
            "fixture_id": fixture.external_id,
            "slug": fixture.slug or "",
            "home_team": fixture.home_team,
            "away_team": fixture.away_team,
            "competition_name": fixture.competition_name,
            "competition_country": fixture.competition_country,
            "competition_flag": fixture.competition_flag,
            "kickoff_time": fixture.kickoff_time,
            "home_win_probability": probs.home_win,
            "draw_probability": probs.draw,
            "away_win_probability": probs.away_win,
            "home_expected_goals": estimate.home_xg,
            "away_expected_goals": estimate.away_xg,
            "predicted_winner": probs.predicted_winner,
            "advisory_winner": estimate.advisory_winner,
            "confidence_score": estimate.confidence_score,
            "analysis": estimate.analysis,
            "key_facts": estimate.key_facts,
            "seo_title": estimate.seo_title[:300],
            "meta_description": estimate.meta_description[:300],
        }

    async def _upsert_prediction(self, values: dict[str, Any]) -> bool:
        """Insert-or-replace keyed on fixture_id.

        A resolved row is left alone so a racing run cannot reset its outcome.
        Returns False when nothing was written.
        """
        stmt = dialect_insert(self.db, Prediction).values(**values)
        update_cols = {
            col: getattr(stmt.excluded, col)
            for col in values
            if col != "fixture_id"
        }
        update_cols["updated_at"] = utcnow()
        stmt = stmt.on_conflict_do_update(
            index_elements=["fixture_id"],
            set_=update_cols,
            where=Prediction.is_resolved.is_(False),
        ).returning(Prediction.id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None
