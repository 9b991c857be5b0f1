"""Category configuration model (source location -> category)."""

from sqlalchemy import Column, Enum, Integer, String

from mailstock.database import Base
from mailstock.models.enums import Category
from mailstock.models.mixins import TimestampMixin


class CategoryConfig(Base, TimestampMixin):
    """Maps a monitored source location to a category."""

    __tablename__ = "category_config"

    id = Column(Integer, primary_key=True, index=True)
    location = Column(String(1024), nullable=False, unique=True)
    category = Column(
        Enum(Category, name="category", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    display_name = Column(String(255), nullable=True)
