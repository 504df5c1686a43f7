from typing import List
import uuid
from loguru import logger
from sqlmodel import Session
from fastapi import HTTPException, UploadFile, status

from app.core.config import settings
from app.db.schema import User, Material, MaterialImage
from app.models.material import MaterialResponse
from app.services.material import MaterialService
from app.utils.file_storage import ImageStorage, validate_image_file


class MaterialImageService:
    """
    Image lifecycle of a material. Every operation goes through the owning
    material, loaded with a row lock, so the image list of one material is
    only ever mutated by one request at a time.
    """

    def __init__(self, session: Session, storage: ImageStorage):
        self.session = session
        self.storage = storage
        self.materials = MaterialService(session, storage)
        self.max_images = settings.max_images_per_material

    def _find_image(self, material: Material, image_id: uuid.UUID) -> MaterialImage:
        image = next((img for img in material.images if img.id == image_id), None)
        if not image:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
        return image

    def upload_images(self, user: User, material_id: uuid.UUID, files: List[UploadFile]) -> MaterialResponse:
        material = self.materials.get_or_404(material_id, lock=True)

        if not files:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Please select at least one image"
            )

        if len(material.images) + len(files) > self.max_images:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Maximum {self.max_images} images allowed per material"
            )

        # Validate the whole batch before writing anything
        for upload_file in files:
            validate_image_file(upload_file)

        saved_urls = []
        try:
            for upload_file in files:
                saved_urls.append(self.storage.save(upload_file))
        except OSError as e:
            logger.error(f"Saving images for material {material_id} failed: {e}")
            self.storage.delete_many(saved_urls)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to upload images"
            )

        had_images = len(material.images) > 0
        next_position = max((img.position for img in material.images), default=-1) + 1

        for index, url in enumerate(saved_urls):
            material.images.append(MaterialImage(
                url=url,
                is_primary=(not had_images and index == 0),
                position=next_position + index,
            ))

        try:
            self.session.add(material)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Attaching images to material {material_id} failed: {e}")
            # The record never pointed at these files; remove them
            self.storage.delete_many(saved_urls)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to upload images"
            )

        logger.info(
            f"{len(saved_urls)} image(s) uploaded for material: {material_id}")
        return MaterialResponse(material=self.materials.read(material_id))

    def delete_image(self, user: User, material_id: uuid.UUID, image_id: uuid.UUID) -> dict:
        """
        Removes one image. The primary flag is not handed to another image.
        """
        material = self.materials.get_or_404(material_id, lock=True)
        image = self._find_image(material, image_id)
        url = image.url

        try:
            material.images.remove(image)
            self.session.add(material)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Deleting image {image_id} failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete image"
            )

        self.storage.delete(url)

        logger.info(f"Image deleted from material: {material_id}")
        return {"success": True, "message": "Image deleted successfully"}

    def set_primary(self, user: User, material_id: uuid.UUID, image_id: uuid.UUID) -> MaterialResponse:
        material = self.materials.get_or_404(material_id, lock=True)
        target = self._find_image(material, image_id)

        try:
            for img in material.images:
                img.is_primary = False
                self.session.add(img)
            # Clear first so the single-primary index never sees two primaries
            self.session.flush()

            target.is_primary = True
            self.session.add(target)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Setting primary image {image_id} failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to set primary image"
            )

        logger.info(f"Primary image of material {material_id} set to {image_id}")
        return MaterialResponse(material=self.materials.read(material_id))
