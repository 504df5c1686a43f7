from uuid import UUID
from sqlmodel import SQLModel


class SessionData(SQLModel):
    """Claims carried by the signed session cookie."""
    user_id: UUID
    jti: str


class MessageResponse(SQLModel):
    success: bool = True
    message: str
