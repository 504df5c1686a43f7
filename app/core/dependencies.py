from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyCookie
from sqlmodel import Session

from app.core.config import settings
from app.db.core import get_session
from app.db.schema import User
from app.services.user import UserService
from app.services.dropdown import DropdownService
from app.services.material import MaterialService
from app.services.material_image import MaterialImageService
from app.services.dashboard import DashboardService
from app.utils.file_storage import ImageStorage, get_image_storage

session_cookie = APIKeyCookie(
    name=settings.session_cookie_name, auto_error=False)


def get_user_service(session: Session = Depends(get_session)) -> UserService:
    """Creates a UserService instance using the active DB session."""
    return UserService(session)


def get_dropdown_service(session: Session = Depends(get_session)) -> DropdownService:
    return DropdownService(session=session)


def get_material_service(
    session: Session = Depends(get_session),
    storage: ImageStorage = Depends(get_image_storage)
) -> MaterialService:
    return MaterialService(session=session, storage=storage)


def get_material_image_service(
    session: Session = Depends(get_session),
    storage: ImageStorage = Depends(get_image_storage)
) -> MaterialImageService:
    return MaterialImageService(session=session, storage=storage)


def get_dashboard_service(session: Session = Depends(get_session)) -> DashboardService:
    return DashboardService(session=session)


def get_optional_user(
    token: Optional[str] = Depends(session_cookie),
    service: UserService = Depends(get_user_service)
) -> Optional[User]:
    return service.resolve_session(token)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """
    Gatekeeper for protected routes: requires a valid session cookie that
    belongs to an active user.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please login first",
        )
    return user
