from typing import Optional
import math
import uuid
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select, or_, col, func
from fastapi import HTTPException, status

from app.db.schema import User, Material, DropdownOption, DropdownType
from app.models.material import (
    MaterialCreate, MaterialUpdate, MaterialRead, MaterialPage,
    MaterialImageRead, DropdownRef
)
from app.utils.file_storage import ImageStorage


MATERIAL_LOAD_OPTIONS = (
    selectinload(Material.division),
    selectinload(Material.placement),
    selectinload(Material.images),
)


def _ref(option: Optional[DropdownOption]) -> Optional[DropdownRef]:
    if option is None:
        return None
    return DropdownRef(id=option.id, label=option.label, value=option.value)


def to_material_read(material: Material) -> MaterialRead:
    return MaterialRead(
        id=material.id,
        material_name=material.material_name,
        material_number=material.material_number,
        division_id=material.division_id,
        placement_id=material.placement_id,
        division=_ref(material.division),
        placement=_ref(material.placement),
        function=material.function,
        images=[
            MaterialImageRead(id=img.id, url=img.url,
                              is_primary=img.is_primary)
            for img in material.images
        ],
        is_active=material.is_active,
        created_at=material.created_at,
        updated_at=material.updated_at,
    )


class MaterialService:
    def __init__(self, session: Session, storage: ImageStorage):
        self.session = session
        self.storage = storage

    def get_or_404(self, material_id: uuid.UUID, lock: bool = False) -> Material:
        statement = select(Material).where(Material.id == material_id)
        if lock:
            statement = statement.with_for_update()
        material = self.session.exec(statement).first()
        if not material:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Material not found")
        return material

    def _check_option(self, option_id: uuid.UUID, expected: DropdownType, field: str):
        option = self.session.get(DropdownOption, option_id)
        if not option or option.type != expected:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} does not reference an existing {expected.value}"
            )

    def _number_taken(self, material_number: str, exclude_id: uuid.UUID = None) -> bool:
        statement = select(Material.id).where(
            Material.material_number == material_number)
        if exclude_id:
            statement = statement.where(Material.id != exclude_id)
        return self.session.exec(statement).first() is not None

    def _commit(self, material: Material, action: str):
        try:
            self.session.add(material)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if "material_number" in str(e.orig):
                detail = "Material number already exists"
            else:
                # Foreign key: the option was deleted after it was checked
                logger.warning(f"Material {action} hit a constraint: {e.orig}")
                detail = "Referenced division or placement no longer exists"
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=detail
            )
        except Exception as e:
            self.session.rollback()
            logger.error(f"Material {action} failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to {action} material"
            )

    def read(self, material_id: uuid.UUID) -> MaterialRead:
        self.session.expire_all()
        material = self.session.exec(
            select(Material)
            .where(Material.id == material_id)
            .options(*MATERIAL_LOAD_OPTIONS)
        ).first()
        if not material:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Material not found")
        return to_material_read(material)

    def list_materials(
        self,
        user: User,
        search: Optional[str] = None,
        division_id: Optional[uuid.UUID] = None,
        placement_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 10,
    ) -> MaterialPage:
        """
        One page of materials, newest first. Inactive materials are listed too.
        """
        filters = []
        if search:
            search_fmt = f"%{search}%"
            filters.append(
                or_(
                    col(Material.material_name).ilike(search_fmt),
                    col(Material.material_number).ilike(search_fmt)
                )
            )
        if division_id:
            filters.append(Material.division_id == division_id)
        if placement_id:
            filters.append(Material.placement_id == placement_id)

        total = self.session.exec(
            select(func.count(Material.id)).where(*filters)
        ).one()

        statement = (
            select(Material)
            .where(*filters)
            .options(*MATERIAL_LOAD_OPTIONS)
            .order_by(Material.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        results = self.session.exec(statement).all()

        return MaterialPage(
            materials=[to_material_read(m) for m in results],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
        )

    def get_material(self, user: User, material_id: uuid.UUID) -> MaterialRead:
        return self.read(material_id)

    def create_material(self, user: User, data: MaterialCreate) -> MaterialRead:
        if self._number_taken(data.material_number):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Material number already exists"
            )

        self._check_option(data.division_id, DropdownType.DIVISION, "divisionId")
        self._check_option(data.placement_id,
                           DropdownType.PLACEMENT, "placementId")

        material = Material(
            material_name=data.material_name,
            material_number=data.material_number,
            division_id=data.division_id,
            placement_id=data.placement_id,
            function=data.function,
        )
        self._commit(material, "create")

        logger.info(
            f"Material created: {data.material_name} ({data.material_number})")
        return self.read(material.id)

    def update_material(self, user: User, material_id: uuid.UUID, data: MaterialUpdate) -> MaterialRead:
        material = self.get_or_404(material_id, lock=True)
        changes = data.model_dump(exclude_unset=True)

        new_number = changes.get("material_number")
        if new_number and new_number != material.material_number:
            if self._number_taken(new_number, exclude_id=material.id):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Material number already exists"
                )

        if changes.get("division_id"):
            self._check_option(changes["division_id"],
                               DropdownType.DIVISION, "divisionId")
        if changes.get("placement_id"):
            self._check_option(changes["placement_id"],
                               DropdownType.PLACEMENT, "placementId")

        for field in ("material_name", "material_number", "division_id", "placement_id"):
            if changes.get(field) is not None:
                setattr(material, field, changes[field])

        # `function` may be cleared explicitly
        if "function" in changes:
            material.function = changes["function"]

        self._commit(material, "update")

        logger.info(f"Material updated: {material_id}")
        return self.read(material_id)

    def toggle_status(self, user: User, material_id: uuid.UUID) -> MaterialRead:
        material = self.get_or_404(material_id, lock=True)
        material.is_active = not material.is_active
        self._commit(material, "update")

        logger.info(
            f"Material status toggled: {material_id} - Active: {material.is_active}")
        return self.read(material_id)

    def delete_material(self, user: User, material_id: uuid.UUID) -> dict:
        """
        Deletes the record together with its images, then removes the files.
        File cleanup is best-effort: failures are logged, the record stays deleted.
        """
        material = self.get_or_404(material_id, lock=True)
        name = material.material_name
        urls = [img.url for img in material.images]

        try:
            self.session.delete(material)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Material deletion failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete material"
            )

        removed = self.storage.delete_many(urls)
        if removed < len(urls):
            logger.warning(
                f"Material {material_id} deleted with {len(urls) - removed} orphaned image file(s)")

        logger.info(f"Material deleted: {name}")
        return {"success": True, "message": "Material deleted successfully"}
