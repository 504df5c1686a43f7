import os
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, text
from loguru import logger

from app.core.config import settings
from app.db.core import get_session

router = APIRouter()


@router.get("/", status_code=status.HTTP_200_OK)
def index():
    return {"message": "Material Management API is running!"}


@router.get("/api/readiness", status_code=status.HTTP_200_OK)
def readiness_check(session: Session = Depends(get_session)):
    """Database reachable and upload directory writable."""
    try:
        session.exec(text("SELECT 1"))
    except Exception:
        logger.exception("Database readiness check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not ready"
        )

    if not os.access(settings.upload_dir, os.W_OK):
        logger.error(f"Upload directory not writable: {settings.upload_dir}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Upload storage not ready"
        )

    return {"status": "ready", "database": "online", "storage": "online"}
