"""Runtime setting schemas."""

from pydantic import BaseModel


class ReadAsTreatedSetting(BaseModel):
    """When enabled, the first read of an untreated item marks it treated."""

    enabled: bool
