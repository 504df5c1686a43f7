import os
import shutil
import uuid
from pathlib import Path
from typing import List, Optional

from fastapi import UploadFile, HTTPException, status
from loguru import logger

from app.core.config import settings


UPLOAD_URL_PREFIX = "/uploads"
MATERIAL_IMG_SUBDIR = "materials"

# Both the declared content type and the extension must be on these lists
ALLOWED_IMAGE_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png"}
ALLOWED_IMAGE_EXTENSIONS = {"jpeg", "jpg", "png"}


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def _file_size(upload_file: UploadFile) -> int:
    if upload_file.size is not None:
        return upload_file.size
    upload_file.file.seek(0, os.SEEK_END)
    size = upload_file.file.tell()
    upload_file.file.seek(0)
    return size


def validate_image_file(upload_file: UploadFile, max_size_mb: int = None) -> str:
    """
    Checks type and size of an uploaded image.
    Returns the normalized extension; raises HTTPException(400) otherwise.
    """
    max_size_mb = max_size_mb or settings.max_image_size_mb
    filename = upload_file.filename or ""

    ext = _extension(filename)
    content_type = (upload_file.content_type or "").lower()

    if ext not in ALLOWED_IMAGE_EXTENSIONS or content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only .jpg, .jpeg, and .png files are allowed (got '{filename}')"
        )

    if _file_size(upload_file) > max_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File '{filename}' exceeds the {max_size_mb}MB limit"
        )

    return ext


class ImageStorage:
    """
    Local-disk store for uploaded images.
    Files live under `root/<subdir>/` and are addressed by public URLs of the
    form `/uploads/<subdir>/<name>`, which the app serves as static files.
    """

    def __init__(self, root: Path, url_prefix: str = UPLOAD_URL_PREFIX):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, upload_file: UploadFile, subdir: str = MATERIAL_IMG_SUBDIR) -> str:
        """
        Writes the stream under a generated name, keeping the original
        extension, and returns its public URL.
        """
        target_dir = self.root / subdir
        os.makedirs(target_dir, exist_ok=True)

        ext = _extension(upload_file.filename or "") or "bin"
        unique_name = f"{uuid.uuid4().hex}.{ext}"
        file_path = target_dir / unique_name

        upload_file.file.seek(0)
        with open(file_path, "wb") as buffer:
            shutil.copyfileobj(upload_file.file, buffer)

        return f"{self.url_prefix}/{subdir}/{unique_name}"

    def path_for(self, url: str) -> Optional[Path]:
        """Maps a public URL back to a file inside the storage root."""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None

        relative = url[len(self.url_prefix) + 1:]
        candidate = (self.root / relative).resolve()
        if not candidate.is_relative_to(self.root.resolve()):
            return None
        return candidate

    def delete(self, url: str) -> bool:
        """
        Best-effort removal. Never raises: a failure leaves an orphaned file
        behind and is logged so it can be cleaned up later.
        """
        file_path = self.path_for(url)
        if file_path is None:
            logger.warning(f"Refusing to delete file outside upload dir: {url}")
            return False

        try:
            if file_path.exists():
                file_path.unlink()
            return True
        except OSError as e:
            logger.error(f"Orphaned upload, could not delete {file_path}: {e}")
            return False

    def delete_many(self, urls: List[str]) -> int:
        """Returns how many files were removed (or already absent)."""
        return sum(1 for url in urls if self.delete(url))


def get_image_storage() -> ImageStorage:
    return ImageStorage(settings.upload_dir)
