from datetime import datetime

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from smartfootball.utils.timeutils import utcnow


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)
