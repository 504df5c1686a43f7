from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.core.dependencies import (
    get_current_user,
    get_material_service,
    get_material_image_service,
)
from app.db.schema import User
from app.services.material import MaterialService
from app.services.material_image import MaterialImageService
from app.models.auth import MessageResponse
from app.models.material import (
    MaterialCreate, MaterialUpdate, MaterialRead, MaterialPage, MaterialResponse
)

router = APIRouter()


@router.get(
    "",
    response_model=MaterialPage,
    status_code=status.HTTP_200_OK,
    summary="List Materials",
    description="Paginated list of active and inactive materials, newest first."
)
def list_materials(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(
        None, description="Case-insensitive match on name or number"),
    division_id: Optional[UUID] = Query(None, alias="divisionId"),
    placement_id: Optional[UUID] = Query(None, alias="placementId"),
    current_user: User = Depends(get_current_user),
    service: MaterialService = Depends(get_material_service)
):
    return service.list_materials(
        current_user,
        search=search,
        division_id=division_id,
        placement_id=placement_id,
        page=page,
        limit=limit,
    )


@router.get(
    "/{material_id}",
    response_model=MaterialRead,
    status_code=status.HTTP_200_OK,
    summary="Get Material"
)
def get_material(
    material_id: UUID,
    current_user: User = Depends(get_current_user),
    service: MaterialService = Depends(get_material_service)
):
    return service.get_material(current_user, material_id)


@router.post(
    "",
    response_model=MaterialRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Material",
    description="Creates a material without images. The material number must be unique."
)
def create_material(
    data: MaterialCreate,
    current_user: User = Depends(get_current_user),
    service: MaterialService = Depends(get_material_service)
):
    return service.create_material(current_user, data)


@router.put(
    "/{material_id}",
    response_model=MaterialRead,
    status_code=status.HTTP_200_OK,
    summary="Update Material",
    description="Partial update; only the fields sent are changed."
)
def update_material(
    material_id: UUID,
    data: MaterialUpdate,
    current_user: User = Depends(get_current_user),
    service: MaterialService = Depends(get_material_service)
):
    return service.update_material(current_user, material_id, data)


@router.patch(
    "/{material_id}/toggle-status",
    response_model=MaterialRead,
    status_code=status.HTTP_200_OK,
    summary="Toggle active status"
)
def toggle_status(
    material_id: UUID,
    current_user: User = Depends(get_current_user),
    service: MaterialService = Depends(get_material_service)
):
    return service.toggle_status(current_user, material_id)


@router.delete(
    "/{material_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete Material",
    description="Deletes the material and its image files."
)
def delete_material(
    material_id: UUID,
    current_user: User = Depends(get_current_user),
    service: MaterialService = Depends(get_material_service)
):
    return service.delete_material(current_user, material_id)


@router.post(
    "/{material_id}/images",
    response_model=MaterialResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload images",
    description="Multipart upload (field 'images'). JPG/PNG only, 5MB each, at most 5 per material."
)
def upload_images(
    material_id: UUID,
    images: List[UploadFile] = File(...,
                                    description="Up to 5 JPG or PNG files."),
    current_user: User = Depends(get_current_user),
    service: MaterialImageService = Depends(get_material_image_service)
):
    return service.upload_images(current_user, material_id, images)


@router.delete(
    "/{material_id}/images/{image_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete image"
)
def delete_image(
    material_id: UUID,
    image_id: UUID,
    current_user: User = Depends(get_current_user),
    service: MaterialImageService = Depends(get_material_image_service)
):
    return service.delete_image(current_user, material_id, image_id)


@router.put(
    "/{material_id}/images/{image_id}/primary",
    response_model=MaterialResponse,
    status_code=status.HTTP_200_OK,
    summary="Set primary image"
)
def set_primary_image(
    material_id: UUID,
    image_id: UUID,
    current_user: User = Depends(get_current_user),
    service: MaterialImageService = Depends(get_material_image_service)
):
    return service.set_primary(current_user, material_id, image_id)
