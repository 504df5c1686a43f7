from typing import List, Union
import uuid
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from fastapi import HTTPException, status

from app.db.schema import User, DropdownOption, DropdownType
from app.models.dropdown import (
    DropdownCreate, DropdownUpdate, DropdownRead, DropdownOptions
)
from app.services.integrity import count_referencing, reference_field


class DropdownService:
    def __init__(self, session: Session):
        self.session = session

    def _parse_type(self, dropdown_type: Union[str, DropdownType]) -> DropdownType:
        try:
            return DropdownType(dropdown_type)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Type must be "division" or "placement"'
            )

    def _get_or_404(self, dropdown_id: uuid.UUID) -> DropdownOption:
        dropdown = self.session.get(DropdownOption, dropdown_id)
        if not dropdown:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Dropdown not found")
        return dropdown

    def _value_taken(self, dropdown_type: DropdownType, value: str, exclude_id: uuid.UUID = None) -> bool:
        statement = select(DropdownOption).where(
            DropdownOption.type == dropdown_type,
            DropdownOption.value == value
        )
        if exclude_id:
            statement = statement.where(DropdownOption.id != exclude_id)
        return self.session.exec(statement).first() is not None

    def _conflict(self, dropdown_type: DropdownType, value: str) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'{dropdown_type.value} with value "{value}" already exists'
        )

    def _commit(self, dropdown: DropdownOption, action: str):
        conflict = self._conflict(dropdown.type, dropdown.value)
        try:
            self.session.add(dropdown)
            self.session.commit()
            self.session.refresh(dropdown)
        except IntegrityError:
            # The unique constraint caught a concurrent write the pre-check missed
            self.session.rollback()
            raise conflict
        except Exception as e:
            self.session.rollback()
            logger.error(f"Dropdown {action} failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to {action} dropdown"
            )

    def list_by_type(
        self,
        user: User,
        dropdown_type: Union[str, DropdownType],
        active_only: bool = True
    ) -> List[DropdownRead]:
        parsed = self._parse_type(dropdown_type)

        statement = select(DropdownOption).where(DropdownOption.type == parsed)
        if active_only:
            statement = statement.where(DropdownOption.is_active == True)
        statement = statement.order_by(DropdownOption.label.asc())

        results = self.session.exec(statement).all()
        return [DropdownRead.model_validate(d) for d in results]

    def list_all(self, user: User, active_only: bool = True) -> DropdownOptions:
        return DropdownOptions(
            divisions=self.list_by_type(
                user, DropdownType.DIVISION, active_only),
            placements=self.list_by_type(
                user, DropdownType.PLACEMENT, active_only),
        )

    def create_dropdown(self, user: User, data: DropdownCreate) -> DropdownRead:
        if self._value_taken(data.type, data.value):
            raise self._conflict(data.type, data.value)

        dropdown = DropdownOption(
            type=data.type,
            label=data.label,
            value=data.value
        )
        self._commit(dropdown, "create")

        logger.info(
            f"Dropdown created: {dropdown.label} ({dropdown.type.value}) by {user.email}")
        return DropdownRead.model_validate(dropdown)

    def update_dropdown(self, user: User, dropdown_id: uuid.UUID, data: DropdownUpdate) -> DropdownRead:
        dropdown = self._get_or_404(dropdown_id)

        if data.value and data.value != dropdown.value:
            if self._value_taken(dropdown.type, data.value, exclude_id=dropdown.id):
                raise self._conflict(dropdown.type, data.value)

        if data.label:
            dropdown.label = data.label
        if data.value:
            dropdown.value = data.value
        if data.is_active is not None:
            dropdown.is_active = data.is_active

        self._commit(dropdown, "update")

        logger.info(f"Dropdown updated: {dropdown.label}")
        return DropdownRead.model_validate(dropdown)

    def _in_use(self, dropdown_type: DropdownType, label: str, used_count: int) -> HTTPException:
        field = reference_field(dropdown_type)
        logger.warning(
            f"Refused to delete {dropdown_type.value} '{label}': "
            f"referenced by {used_count} material(s) via {field}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                f"Cannot delete. This {dropdown_type.value} is used by "
                f"{used_count} material(s) (field: {field})"
            )
        )

    def delete_dropdown(self, user: User, dropdown_id: uuid.UUID) -> dict:
        dropdown = self._get_or_404(dropdown_id)
        option_id, label, dropdown_type = dropdown.id, dropdown.label, dropdown.type

        used_count = count_referencing(self.session, option_id, dropdown_type)
        if used_count > 0:
            raise self._in_use(dropdown_type, label, used_count)

        try:
            self.session.delete(dropdown)
            self.session.commit()
        except IntegrityError:
            # A material started referencing the option after the guard ran;
            # the foreign key rejected the delete
            self.session.rollback()
            used_count = count_referencing(self.session, option_id, dropdown_type)
            raise self._in_use(dropdown_type, label, used_count)

        logger.info(f"Dropdown deleted: {label}")
        return {"success": True, "message": "Dropdown deleted successfully"}
