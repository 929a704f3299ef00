from datetime import datetime

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from smartfootball.models.base import Base, TimestampMixin

# Provider short status codes
SCHEDULED_STATUS = "NS"
FINISHED_STATUSES = frozenset({"FT", "AET", "PEN"})


class Fixture(TimestampMixin, Base):
    """A match as written by the ingestion job. Read-only here."""

    __tablename__ = "fixtures"
    __table_args__ = (
        Index("ix_fixtures_status_kickoff", "status", "kickoff_time"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[int] = mapped_column(unique=True, index=True)
    slug: Mapped[str] = mapped_column(String(200), default="")
    home_team: Mapped[str] = mapped_column(String(100))
    away_team: Mapped[str] = mapped_column(String(100))
    competition_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    competition_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    competition_flag: Mapped[str | None] = mapped_column(String(500), nullable=True)
    kickoff_time: Mapped[datetime]
    status: Mapped[str] = mapped_column(String(10), default=SCHEDULED_STATUS)

    goals_home: Mapped[int | None] = mapped_column(nullable=True)
    goals_away: Mapped[int | None] = mapped_column(nullable=True)

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    @property
    def label(self) -> str:
        return f"{self.home_team} vs {self.away_team}"
