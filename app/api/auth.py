from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Response, status
from loguru import logger

from app.core.config import settings
from app.core.dependencies import get_user_service, get_optional_user, session_cookie
from app.services.user import UserService
from app.db.schema import User
from app.models.auth import MessageResponse
from app.models.user import (
    UserSignin, UserCreate, UserRead, AuthResponse, RegisterResponse, AuthCheck
)


router = APIRouter()


def _user_read(user: User) -> UserRead:
    return UserRead(id=user.id, email=user.email, name=user.name, role=user.role)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Login",
    description="Verifies credentials and opens a session (HttpOnly cookie)."
)
def login(
    signin_data: UserSignin,
    response: Response,
    service: UserService = Depends(get_user_service)
):
    user = service.authenticate_user(signin_data.email, signin_data.password)

    if not user:
        # Same message for unknown email and wrong password
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated. Please contact an administrator."
        )

    response.set_cookie(
        key=settings.session_cookie_name,
        value=service.create_session_token(user),
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )

    logger.info(f"User logged in: {user.email}")
    return AuthResponse(user=_user_read(user))


@router.post(
    "/logout",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Logout",
    description="Destroys the server-side session and clears the session cookie."
)
def logout(
    response: Response,
    token: Optional[str] = Depends(session_cookie),
    service: UserService = Depends(get_user_service)
):
    if service.end_session(token):
        logger.info("User logged out")
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/check",
    response_model=AuthCheck,
    status_code=status.HTTP_200_OK,
    summary="Check session",
    description="Reports whether the caller holds a valid session. Never fails with 401."
)
def check(current_user: Optional[User] = Depends(get_optional_user)):
    if current_user is None:
        return AuthCheck(is_authenticated=False)
    return AuthCheck(is_authenticated=True, user=_user_read(current_user))


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Creates a staff account with the 'user' role."
)
def register(
    user_in: UserCreate,
    service: UserService = Depends(get_user_service)
):
    new_user = service.create_user(user_in)
    return RegisterResponse(user=_user_read(new_user))
