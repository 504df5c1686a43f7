from typing import List, Optional
from uuid import UUID
from datetime import datetime
from sqlmodel import Field

from app.db.schema import DropdownType
from app.models.base import CamelModel, NonEmptyStr


class DropdownCreate(CamelModel):
    type: DropdownType
    label: NonEmptyStr = Field(max_length=100)
    value: NonEmptyStr = Field(max_length=100)


class DropdownUpdate(CamelModel):
    label: Optional[NonEmptyStr] = Field(default=None, max_length=100)
    value: Optional[NonEmptyStr] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None


class DropdownRead(CamelModel):
    id: UUID
    type: DropdownType
    label: str
    value: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class DropdownResponse(CamelModel):
    success: bool = True
    dropdown: DropdownRead


class DropdownOptions(CamelModel):
    """Both vocabularies at once, for populating material forms."""
    divisions: List[DropdownRead]
    placements: List[DropdownRead]
