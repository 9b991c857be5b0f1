"""Weekly aggregate and report schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mailstock.models.enums import Category


class WeeklyAggregateResponse(BaseModel):
    """Stored weekly row."""

    model_config = ConfigDict(from_attributes=True)

    week_identifier: str
    category: Category
    year: int
    week_number: int
    week_start: date
    week_end: date
    received_count: int
    treated_count: int
    manual_adjustment_total: int
    last_updated_at: datetime | None


class CategoryWeekReport(BaseModel):
    """One category within a week report."""

    category: Category
    label: str
    received: int
    treated: int
    manual_adjustment: int
    stock_start: int
    stock_end: int


class WeekEvolution(BaseModel):
    """Change in received totals against the previous reported week."""

    absolute: int = 0
    percent: float = 0.0
    trend: str = "stable"  # "up" | "down" | "stable"


class WeekReport(BaseModel):
    """All categories of one ISO week with carried-over stock."""

    week_identifier: str
    display: str
    year: int
    week_number: int
    week_start: date
    week_end: date
    categories: list[CategoryWeekReport]
    total_received: int
    total_treated: int
    total_stock_end: int
    evolution: WeekEvolution = Field(default_factory=WeekEvolution)


class WeeklyHistoryPage(BaseModel):
    """A page of week reports, most recent week first."""

    page: int
    page_size: int
    total_weeks: int
    total_pages: int
    weeks: list[WeekReport]


class StockResponse(BaseModel):
    """Backlog per category immediately before a week."""

    year: int
    week_number: int
    stock: dict[Category, int]
    total: int


class ManualAdjustmentRequest(BaseModel):
    """Signed correction to a week's manual adjustment total."""

    category: str = Field(..., min_length=1, max_length=100)
    delta: int


class HistoricalWeekRow(BaseModel):
    """One historical row from a bulk import collaborator."""

    year: int = Field(..., ge=1970, le=9999)
    week_number: int = Field(..., ge=1, le=53)
    category: str = Field(..., min_length=1, max_length=100)
    received: int = Field(0, ge=0)
    treated: int = Field(0, ge=0)
    manual_adjustment: int = 0
    week_start: date | None = None
    week_end: date | None = None

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("category is required")
        return value

    @model_validator(mode="after")
    def bounds_together(self) -> "HistoricalWeekRow":
        if (self.week_start is None) != (self.week_end is None):
            raise ValueError("week_start and week_end must be given together")
        return self


class HistoryImportRequest(BaseModel):
    """Raw rows are validated one by one so a bad row does not fail the batch."""

    rows: list[dict] = Field(..., max_length=50000)


class ImportRowError(BaseModel):
    index: int
    reason: str


class ImportResult(BaseModel):
    """Accepted vs. skipped rows of a historical import."""

    accepted: int = 0
    skipped: int = 0
    weeks_written: int = 0
    errors: list[ImportRowError] = Field(default_factory=list)
