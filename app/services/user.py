from typing import Optional
import uuid
from datetime import datetime, timedelta

import jwt
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from fastapi import HTTPException, status

from app.core.config import settings
from app.db.schema import User, UserRole, UserSession
from app.models.auth import SessionData
from app.models.user import UserCreate
from .password import get_password_hash, verify_password


class UserService:
    ALGORITHM = "HS256"
    TOKEN_TYPE = "session"

    def __init__(self, session: Session):
        self.session = session

    def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        statement = select(User).where(User.id == user_id)
        return self.session.exec(statement).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        statement = select(User).where(User.email == email.lower())
        return self.session.exec(statement).first()

    def create_user(self, user_in: UserCreate, role: UserRole = UserRole.USER) -> User:
        if self.get_user_by_email(user_in.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )

        new_user = User(
            email=user_in.email.lower(),
            hashed_password=get_password_hash(user_in.password),
            name=user_in.name,
            role=role,
            is_active=True
        )

        try:
            self.session.add(new_user)
            self.session.commit()
            self.session.refresh(new_user)
        except IntegrityError:
            # Lost a race against a concurrent registration
            self.session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )
        except Exception as e:
            self.session.rollback()
            logger.error(f"Registration failed: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Registration failed. Please try again"
            )

        logger.info(f"New user registered: {new_user.email}")
        return new_user

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Verify email and password hash."""
        user = self.get_user_by_email(email)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def create_session_token(self, user: User) -> str:
        """
        Opens a server-side session for the user and returns the signed
        cookie value that refers to it.
        """
        expires_at = datetime.utcnow() + timedelta(minutes=settings.session_expire_minutes)
        jti = uuid.uuid4().hex

        self.session.add(UserSession(jti=jti, user_id=user.id, expires_at=expires_at))
        self.session.commit()

        to_encode = {
            "sub": str(user.id),
            "jti": jti,
            "exp": expires_at,
            "type": self.TOKEN_TYPE
        }
        return jwt.encode(to_encode, settings.secret_key, algorithm=self.ALGORITHM)

    def verify_session_token(self, token: str) -> Optional[SessionData]:
        try:
            payload = jwt.decode(token, settings.secret_key,
                                 algorithms=[self.ALGORITHM])
            user_id = payload.get("sub")
            jti = payload.get("jti")
            token_type = payload.get("type")

            if not user_id or not jti or token_type != self.TOKEN_TYPE:
                return None

            return SessionData(user_id=uuid.UUID(user_id), jti=jti)
        except (jwt.PyJWTError, ValueError):
            return None

    def resolve_session(self, token: Optional[str]) -> Optional[User]:
        """
        Returns the active user behind a session cookie, or None when the
        cookie is missing, tampered with, expired, logged out, or points to a
        deactivated or deleted account.
        """
        if not token:
            return None

        session_data = self.verify_session_token(token)
        if not session_data:
            return None

        stored = self.session.get(UserSession, session_data.jti)
        if (
            not stored
            or stored.user_id != session_data.user_id
            or stored.expires_at <= datetime.utcnow()
        ):
            return None

        user = self.get_user_by_id(session_data.user_id)
        if not user or not user.is_active:
            return None
        return user

    def end_session(self, token: Optional[str]) -> bool:
        """
        Destroys the server-side session behind a cookie, if any, and prunes
        expired sessions. Returns True when a live session was removed.
        """
        session_data = self.verify_session_token(token) if token else None

        removed = False
        if session_data:
            stored = self.session.get(UserSession, session_data.jti)
            if stored:
                self.session.delete(stored)
                removed = True

        expired = self.session.exec(
            select(UserSession).where(UserSession.expires_at <= datetime.utcnow())
        ).all()
        for row in expired:
            self.session.delete(row)

        self.session.commit()
        return removed
