from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator


class LeadRecord(BaseModel):
    """The fields of a lead (and its first vehicle) used for duplicate matching."""

    id: str
    reg_nr: Optional[str] = None
    chassis_nr: Optional[str] = None
    phone: Optional[str] = None
    owner_name: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v):
        """Lead ids are uuids in the database."""
        return str(v)

    model_config = ConfigDict(from_attributes=True)
