from typing import Optional, List
from datetime import datetime
import uuid
from sqlalchemy import Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field, Relationship
from enum import Enum


class DropdownType(str, Enum):
    DIVISION = "division"
    PLACEMENT = "placement"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class TimestampMixin(SQLModel):
    """
    Standard audit timestamps shared by every table.
    """
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        index=True,
        description="UTC timestamp when the record was first persisted. Example: '2024-05-02 08:30:00'"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column_kwargs={"onupdate": datetime.utcnow},
        description="UTC timestamp of the last modification. Updates automatically."
    )


class User(TimestampMixin, SQLModel, table=True):
    """
    A staff member allowed to sign in and administer materials.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the user."
    )
    email: str = Field(
        unique=True,
        index=True,
        description="The login email address, stored lower-cased. Example: 'jane@example.com'"
    )
    hashed_password: str = Field(
        description="bcrypt hash of the password. Never store plain text."
    )
    name: str = Field(
        description="Full display name. Example: 'Jane Doe'"
    )
    role: UserRole = Field(
        default=UserRole.USER,
        description="Coarse role of the account: 'user' or 'admin'."
    )
    is_active: bool = Field(
        default=True,
        description="If False, the user cannot log in."
    )


class UserSession(SQLModel, table=True):
    """
    A signed-in browser session. The cookie token carries the `jti`; the
    token is only honoured while this row exists. Logout deletes the row.
    """
    jti: str = Field(
        primary_key=True,
        max_length=64,
        description="Token id embedded in the session cookie."
    )
    user_id: uuid.UUID = Field(
        foreign_key="user.id",
        ondelete="CASCADE",
        index=True,
        description="Owner of the session."
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: datetime = Field(
        index=True,
        description="UTC expiry, mirrors the token's `exp` claim."
    )


class DropdownOption(TimestampMixin, SQLModel, table=True):
    """
    One entry of a managed vocabulary (division or placement).
    Materials reference options by id; an option that is still referenced
    cannot be deleted.
    """
    __table_args__ = (
        UniqueConstraint("type", "value", name="uq_dropdownoption_type_value"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="The unique identifier for the option."
    )
    type: DropdownType = Field(
        index=True,
        description="Which vocabulary this option belongs to. Example: 'division'"
    )
    label: str = Field(
        description="Text shown to users. Example: 'IT Division'"
    )
    value: str = Field(
        description="Slug, unique within the vocabulary. Example: 'it'"
    )
    is_active: bool = Field(
        default=True,
        description="Inactive options are hidden from pickers but kept for existing materials."
    )


class Material(TimestampMixin, SQLModel, table=True):
    """
    An inventory material, tagged with a division and a placement and
    illustrated by up to five images.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="Unique identifier for the material."
    )
    material_name: str = Field(
        index=True,
        description="Common name of the material. Example: 'Cable'"
    )
    material_number: str = Field(
        unique=True,
        index=True,
        description="Globally unique inventory number. Example: 'M-001'"
    )
    division_id: uuid.UUID = Field(
        foreign_key="dropdownoption.id",
        index=True,
        description="Owning division (DropdownOption of type 'division')."
    )
    placement_id: uuid.UUID = Field(
        foreign_key="dropdownoption.id",
        index=True,
        description="Storage placement (DropdownOption of type 'placement')."
    )
    function: Optional[str] = Field(
        default=None,
        description="Free-text description of what the material is used for."
    )
    is_active: bool = Field(
        default=True,
        description="Soft status flag toggled by staff."
    )

    division: Optional[DropdownOption] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Material.division_id]"}
    )
    placement: Optional[DropdownOption] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Material.placement_id]"}
    )
    images: List["MaterialImage"] = Relationship(
        back_populates="material",
        sa_relationship_kwargs={
            "order_by": "MaterialImage.position",
            "cascade": "all, delete-orphan",
        }
    )


class MaterialImage(SQLModel, table=True):
    """
    An image owned by exactly one Material.
    At most one image per material may be primary (partial unique index).
    """
    __table_args__ = (
        Index(
            "uq_materialimage_primary",
            "material_id",
            unique=True,
            sqlite_where=text("is_primary"),
            postgresql_where=text("is_primary"),
        ),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        description="Stable identifier of the image inside its material."
    )
    material_id: uuid.UUID = Field(
        foreign_key="material.id",
        index=True,
        ondelete="CASCADE",
        description="The owning material."
    )
    url: str = Field(
        description="Public path of the stored file. Example: '/uploads/materials/3f2a....png'"
    )
    is_primary: bool = Field(
        default=False,
        description="Whether this is the cover image of the material."
    )
    position: int = Field(
        default=0,
        description="Insertion order inside the owning material."
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)

    material: Optional[Material] = Relationship(back_populates="images")
