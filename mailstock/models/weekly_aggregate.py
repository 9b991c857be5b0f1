"""Weekly aggregate model, one row per (week, category)."""

from sqlalchemy import Column, Date, DateTime, Enum, Index, Integer, String, UniqueConstraint, func

from mailstock.database import Base
from mailstock.models.enums import Category


class WeeklyAggregate(Base):
    """Received/treated/manual counters for one category in one ISO week."""

    __tablename__ = "weekly_aggregates"
    __table_args__ = (
        UniqueConstraint("week_identifier", "category", name="uq_weekly_week_category"),
        Index("ix_weekly_year_week", "year", "week_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    week_identifier = Column(String(8), nullable=False, index=True)  # "2025-W03"
    category = Column(
        Enum(Category, name="category", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    year = Column(Integer, nullable=False)
    week_number = Column(Integer, nullable=False)
    week_start = Column(Date, nullable=False)
    week_end = Column(Date, nullable=False)
    received_count = Column(Integer, nullable=False, default=0)
    treated_count = Column(Integer, nullable=False, default=0)
    manual_adjustment_total = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_updated_at = Column(DateTime(timezone=True), nullable=True)
