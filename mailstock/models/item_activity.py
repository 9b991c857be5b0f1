"""Item activity model for the ledger audit trail."""

from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, Enum, Integer, String

from mailstock.database import Base
from mailstock.models.enums import ActivityType


class ItemActivity(Base):
    """One applied change (or reconciliation gap) for an identity."""

    __tablename__ = "item_activity"

    id = Column(Integer, primary_key=True, index=True)
    identity = Column(String(512), nullable=False, index=True)
    activity_type = Column(
        Enum(ActivityType, name="activitytype", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    occurred_at = Column(DateTime(timezone=True), nullable=False)
    details = Column(JSON, nullable=True)
    recorded_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
