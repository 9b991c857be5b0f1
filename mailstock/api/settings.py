"""Runtime setting endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from mailstock.api.dependencies import get_engine
from mailstock.schemas.settings import ReadAsTreatedSetting
from mailstock.services.engine import InventoryEngine

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


@router.get("/read-as-treated", response_model=ReadAsTreatedSetting)
def get_read_as_treated(engine: Annotated[InventoryEngine, Depends(get_engine)]):
    """Get the read-as-treated policy."""
    return ReadAsTreatedSetting(enabled=engine.config.read_as_treated)


@router.put("/read-as-treated", response_model=ReadAsTreatedSetting)
def put_read_as_treated(
    setting: ReadAsTreatedSetting,
    engine: Annotated[InventoryEngine, Depends(get_engine)],
):
    """Enable or disable the read-as-treated policy. Applies to later events only."""
    engine.set_read_as_treated(setting.enabled)
    return setting
