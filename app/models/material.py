from typing import List, Optional
from uuid import UUID
from datetime import datetime
from sqlmodel import Field

from app.models.base import CamelModel, NonEmptyStr


class MaterialBase(CamelModel):
    material_name: NonEmptyStr = Field(max_length=200)
    material_number: NonEmptyStr = Field(
        max_length=100, description="Unique inventory number")
    division_id: UUID
    placement_id: UUID
    function: Optional[str] = Field(default=None, max_length=2000)


class MaterialCreate(MaterialBase):
    pass


class MaterialUpdate(CamelModel):
    material_name: Optional[NonEmptyStr] = Field(default=None, max_length=200)
    material_number: Optional[NonEmptyStr] = Field(
        default=None, max_length=100)
    division_id: Optional[UUID] = None
    placement_id: Optional[UUID] = None
    function: Optional[str] = Field(default=None, max_length=2000)


class DropdownRef(CamelModel):
    """Resolved division/placement label embedded in material payloads."""
    id: UUID
    label: str
    value: str


class MaterialImageRead(CamelModel):
    id: UUID
    url: str
    is_primary: bool


class MaterialRead(CamelModel):
    id: UUID
    material_name: str
    material_number: str
    division_id: UUID
    placement_id: UUID
    division: Optional[DropdownRef] = None
    placement: Optional[DropdownRef] = None
    function: Optional[str] = None
    images: List[MaterialImageRead] = []
    is_active: bool
    created_at: datetime
    updated_at: datetime


class MaterialPage(CamelModel):
    materials: List[MaterialRead]
    total: int
    page: int
    total_pages: int


class MaterialResponse(CamelModel):
    success: bool = True
    material: MaterialRead
