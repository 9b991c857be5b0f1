"""Key/value application settings stored in the database."""

from sqlalchemy import Column, String

from mailstock.database import Base
from mailstock.models.mixins import TimestampMixin

READ_AS_TREATED_KEY = "count_read_as_treated"


class AppSetting(Base, TimestampMixin):
    """A persisted runtime setting."""

    __tablename__ = "app_settings"

    key = Column(String(100), primary_key=True)
    value = Column(String(255), nullable=False)
    description = Column(String(500), nullable=True)
