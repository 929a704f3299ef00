from datetime import datetime

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from smartfootball.models.base import Base, TimestampMixin


class Prediction(TimestampMixin, Base):
    __tablename__ = "predictions"
    __table_args__ = (
        Index("ix_predictions_unresolved", "is_resolved"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    # Fixture.external_id (not a foreign key)
    fixture_id: Mapped[int] = mapped_column(unique=True, index=True)

    # Snapshot of the fixture at generation time
    slug: Mapped[str] = mapped_column(String(200), default="")
    home_team: Mapped[str] = mapped_column(String(100))
    away_team: Mapped[str] = mapped_column(String(100))
    competition_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    competition_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    competition_flag: Mapped[str | None] = mapped_column(String(500), nullable=True)
    kickoff_time: Mapped[datetime]

    # Win/draw/loss percentages, always summing to 100
    home_win_probability: Mapped[int]
    draw_probability: Mapped[int]
    away_win_probability: Mapped[int]

    home_expected_goals: Mapped[float]
    away_expected_goals: Mapped[float]
    predicted_winner: Mapped[str] = mapped_column(String(10))
    advisory_winner: Mapped[str | None] = mapped_column(String(10), nullable=True)
    confidence_score: Mapped[int]

    # Narrative content from the language model
    analysis: Mapped[str] = mapped_column(Text, default="")
    key_facts: Mapped[list | None] = mapped_column(JSON, nullable=True)
    seo_title: Mapped[str] = mapped_column(String(300), default="")
    meta_description: Mapped[str] = mapped_column(String(300), default="")

    # Filled in once by the resolver
    is_resolved: Mapped[bool] = mapped_column(default=False)
    actual_result: Mapped[str | None] = mapped_column(String(10), nullable=True)
    prediction_correct: Mapped[bool | None] = mapped_column(nullable=True)
    actual_goals_home: Mapped[int | None] = mapped_column(nullable=True)
    actual_goals_away: Mapped[int | None] = mapped_column(nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)
