"""Weekly inventory endpoints for reporting consumers."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mailstock.api.dependencies import get_engine
from mailstock.config import get_settings
from mailstock.exceptions import InvalidWeekError, UnknownCategoryError
from mailstock.schemas.weekly import (
    HistoryImportRequest,
    ImportResult,
    ManualAdjustmentRequest,
    StockResponse,
    WeeklyAggregateResponse,
    WeeklyHistoryPage,
    WeekReport,
)
from mailstock.services.engine import InventoryEngine

router = APIRouter(prefix="/api/v1/weekly", tags=["weekly"])


def unprocessable(error: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))


@router.get("/current", response_model=WeekReport)
def get_current_week(engine: Annotated[InventoryEngine, Depends(get_engine)]):
    """Get the current week's counters and stock."""
    return engine.get_current_week_snapshot()


@router.get("/history", response_model=WeeklyHistoryPage)
def get_history(
    engine: Annotated[InventoryEngine, Depends(get_engine)],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=5, ge=1),
):
    """Get stored weeks, most recent first, with carried-over stock."""
    page_size_max = get_settings().history_page_size_max
    if page_size > page_size_max:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"page_size must be at most {page_size_max}",
        )
    return engine.get_weekly_history_page(page, page_size)


@router.get("/stock-before", response_model=StockResponse)
def get_stock_before(
    engine: Annotated[InventoryEngine, Depends(get_engine)],
    year: int = Query(..., ge=1970, le=9999),
    week: int = Query(..., ge=1, le=53),
):
    """Get the backlog per category immediately before a week."""
    try:
        stock = engine.stock_before(year, week)
    except InvalidWeekError as e:
        raise unprocessable(e) from e
    return StockResponse(year=year, week_number=week, stock=stock, total=sum(stock.values()))


@router.post("/recompute", response_model=list[WeeklyAggregateResponse])
def recompute_current_week(engine: Annotated[InventoryEngine, Depends(get_engine)]):
    """Recompute the current week from the ledger."""
    return engine.recompute_current_week()


@router.post("/import", response_model=ImportResult)
def import_history(
    request: HistoryImportRequest,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Seed or overwrite historical weeks. Malformed rows are skipped and reported."""
    return engine.import_history(request.rows)


@router.get("/{week_identifier}", response_model=WeekReport)
def get_week(
    week_identifier: str,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Get one week's counters and stock."""
    try:
        return engine.get_weekly_aggregate(week_identifier)
    except InvalidWeekError as e:
        raise unprocessable(e) from e


@router.post("/{week_identifier}/adjustments", response_model=WeeklyAggregateResponse)
def adjust_week(
    week_identifier: str,
    adjustment: ManualAdjustmentRequest,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Add a signed manual correction to a week's category."""
    try:
        return engine.adjust_manual(week_identifier, adjustment.category, adjustment.delta)
    except (InvalidWeekError, UnknownCategoryError) as e:
        raise unprocessable(e) from e


@router.post("/{week_identifier}/rebuild", response_model=list[WeeklyAggregateResponse])
def rebuild_week(
    week_identifier: str,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Explicitly rederive a week from the ledger, overwriting its counters."""
    try:
        return engine.rebuild_week(week_identifier)
    except InvalidWeekError as e:
        raise unprocessable(e) from e
