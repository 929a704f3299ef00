from sqlalchemy import CheckConstraint, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from smartfootball.models.base import Base, TimestampMixin

KIND_OVERALL = "overall"
KIND_COMPETITION = "competition"
UNKNOWN_COMPETITION = "Unknown"


class AccuracyRecord(TimestampMixin, Base):
    """Increment-only counters for one week bucket.

    Overall rows store an empty competition so the composite key has no
    NULLs and ON CONFLICT can target it on every backend.
    """

    __tablename__ = "accuracy_records"
    __table_args__ = (
        UniqueConstraint(
            "week_key", "kind", "competition", name="uq_accuracy_records_bucket"
        ),
        CheckConstraint("correct <= total", name="ck_accuracy_records_correct_le_total"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    week_key: Mapped[str] = mapped_column(String(10), index=True)
    kind: Mapped[str] = mapped_column(String(20))
    competition: Mapped[str] = mapped_column(String(100), default="")

    total: Mapped[int] = mapped_column(default=0)
    correct: Mapped[int] = mapped_column(default=0)
