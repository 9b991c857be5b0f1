"""Category and category configuration schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from mailstock.models.enums import Category


class CategoryInfo(BaseModel):
    """A category of the fixed set."""

    key: Category
    label: str
    is_default: bool


class CategoryConfigCreate(BaseModel):
    """Map a source location to a category (label or alias)."""

    location: str = Field(..., min_length=1, max_length=1024)
    category: str = Field(..., min_length=1, max_length=100)
    display_name: str | None = Field(None, max_length=255)


class CategoryConfigResponse(BaseModel):
    """Stored location mapping."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    location: str
    category: Category
    display_name: str | None
    created_at: datetime
    updated_at: datetime


class CategoryResolution(BaseModel):
    """Result of resolving a location."""

    location: str
    category: Category
    label: str
