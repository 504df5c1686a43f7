import uuid
from sqlmodel import Session, select, func

from app.db.schema import DropdownType, Material


REFERENCE_FIELDS = {
    DropdownType.DIVISION: "divisionId",
    DropdownType.PLACEMENT: "placementId",
}


def reference_field(dropdown_type: DropdownType) -> str:
    """Wire name of the Material field that points at options of this type."""
    return REFERENCE_FIELDS[DropdownType(dropdown_type)]


def count_referencing(session: Session, dropdown_id: uuid.UUID, dropdown_type: DropdownType) -> int:
    """
    Number of materials referencing the option through the relation that
    matches its type. Inactive materials count too.
    """
    if DropdownType(dropdown_type) == DropdownType.DIVISION:
        column = Material.division_id
    else:
        column = Material.placement_id

    return session.exec(
        select(func.count(Material.id)).where(column == dropdown_id)
    ).one()
