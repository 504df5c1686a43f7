from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status

from app.core.dependencies import get_current_user, get_dropdown_service
from app.db.schema import User
from app.services.dropdown import DropdownService
from app.models.auth import MessageResponse
from app.models.dropdown import (
    DropdownCreate, DropdownUpdate, DropdownRead, DropdownResponse, DropdownOptions
)

router = APIRouter()


@router.get(
    "/all/options",
    response_model=DropdownOptions,
    status_code=status.HTTP_200_OK,
    summary="List both vocabularies",
    description="Active divisions and placements, each ordered by label."
)
def list_all_options(
    current_user: User = Depends(get_current_user),
    service: DropdownService = Depends(get_dropdown_service)
):
    return service.list_all(current_user)


@router.get(
    "/{dropdown_type}",
    response_model=List[DropdownRead],
    status_code=status.HTTP_200_OK,
    summary="List options by type",
    description="Options of one vocabulary ('division' or 'placement') ordered by label."
)
def list_by_type(
    dropdown_type: str,
    active_only: bool = Query(True, alias="activeOnly",
                              description="Hide inactive options"),
    current_user: User = Depends(get_current_user),
    service: DropdownService = Depends(get_dropdown_service)
):
    return service.list_by_type(current_user, dropdown_type, active_only=active_only)


@router.post(
    "",
    response_model=DropdownResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create option",
    description="Adds an option. (type, value) must be unique."
)
def create_dropdown(
    data: DropdownCreate,
    current_user: User = Depends(get_current_user),
    service: DropdownService = Depends(get_dropdown_service)
):
    return DropdownResponse(dropdown=service.create_dropdown(current_user, data))


@router.put(
    "/{dropdown_id}",
    response_model=DropdownResponse,
    status_code=status.HTTP_200_OK,
    summary="Update option",
    description="Changes label, value or active flag of an option."
)
def update_dropdown(
    dropdown_id: UUID,
    data: DropdownUpdate,
    current_user: User = Depends(get_current_user),
    service: DropdownService = Depends(get_dropdown_service)
):
    return DropdownResponse(dropdown=service.update_dropdown(current_user, dropdown_id, data))


@router.delete(
    "/{dropdown_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete option",
    description="Removes an option. Fails while any material references it."
)
def delete_dropdown(
    dropdown_id: UUID,
    current_user: User = Depends(get_current_user),
    service: DropdownService = Depends(get_dropdown_service)
):
    return service.delete_dropdown(current_user, dropdown_id)
