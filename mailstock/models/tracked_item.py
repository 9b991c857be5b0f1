"""Tracked item model (the ledger's unit)."""

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String

from mailstock.database import Base
from mailstock.models.enums import Category, ItemStatus
from mailstock.models.mixins import SoftDeleteMixin, TimestampMixin


class TrackedItem(Base, TimestampMixin, SoftDeleteMixin):
    """Per-identity lifecycle state of an incoming mail item."""

    __tablename__ = "tracked_items"

    id = Column(Integer, primary_key=True, index=True)
    identity = Column(String(512), nullable=False, unique=True, index=True)
    location = Column(String(1024), nullable=False)
    # Folded form of location, so differently spelled reports match
    location_key = Column(String(1024), nullable=False, index=True)
    category = Column(
        Enum(Category, name="category", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )
    status = Column(
        Enum(ItemStatus, name="itemstatus", values_callable=lambda x: [e.value for e in x]),
        default=ItemStatus.ARRIVED,
        nullable=False,
    )
    # Fixed at creation, defines the week the item is received in
    arrived_at = Column(DateTime(timezone=True), nullable=False)
    arrival_week = Column(String(8), nullable=False, index=True)  # "2025-W03"
    is_read = Column(Boolean, default=False, nullable=False)
    # Monotonic: once stamped, never cleared
    treated_at = Column(DateTime(timezone=True), nullable=True)
    treated_week = Column(String(8), nullable=True, index=True)
    # Legacy convenience flag, does not drive week attribution
    is_treated = Column(Boolean, default=False, nullable=False)
