"""Category and location mapping endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from mailstock.api.dependencies import get_engine
from mailstock.database import get_db
from mailstock.exceptions import UnknownCategoryError
from mailstock.models.category_config import CategoryConfig
from mailstock.models.enums import Category
from mailstock.schemas.category import (
    CategoryConfigCreate,
    CategoryConfigResponse,
    CategoryInfo,
    CategoryResolution,
)
from mailstock.services.engine import InventoryEngine

router = APIRouter(prefix="/api/v1", tags=["categories"])


@router.get("/categories", response_model=list[CategoryInfo])
def get_categories(engine: Annotated[InventoryEngine, Depends(get_engine)]):
    """List the fixed set of categories."""
    return [
        CategoryInfo(
            key=category,
            label=category.label,
            is_default=category == engine.resolver.default,
        )
        for category in Category
    ]


@router.get("/categories/resolve", response_model=CategoryResolution)
def resolve_category(
    engine: Annotated[InventoryEngine, Depends(get_engine)],
    location: str = Query(..., min_length=1),
):
    """Resolve a location the way the ledger would."""
    category = engine.resolver.resolve(location)
    return CategoryResolution(location=location, category=category, label=category.label)


@router.get("/category-config", response_model=list[CategoryConfigResponse])
def get_category_config(db: Annotated[Session, Depends(get_db)]):
    """List configured location mappings."""
    return db.query(CategoryConfig).order_by(CategoryConfig.location).all()


@router.put("/category-config", response_model=CategoryConfigResponse)
def put_category_config(
    config_data: CategoryConfigCreate,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Create or update the category of a location.

    Existing items keep their category until their location is observed again.
    """
    try:
        return engine.map_location(
            config_data.location, config_data.category, config_data.display_name
        )
    except UnknownCategoryError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown category: {config_data.category}",
        ) from e


@router.delete("/category-config", status_code=status.HTTP_204_NO_CONTENT)
def delete_category_config(
    engine: Annotated[InventoryEngine, Depends(get_engine)],
    location: str = Query(..., min_length=1),
):
    """Remove a location mapping; the location falls back to alias/default resolution."""
    if not engine.unmap_location(location):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Location not configured"
        )
