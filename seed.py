import os

from loguru import logger
from sqlmodel import Session, select
from app.db.core import engine
from app.db.schema import User, UserRole, DropdownOption, DropdownType
from app.services.password import get_password_hash


# 1. Default vocabularies: (label, value)
DEFAULT_DROPDOWNS = {
    DropdownType.DIVISION: [
        ("IT", "it"),
        ("Production", "production"),
        ("Maintenance", "maintenance"),
        ("Logistics", "logistics"),
    ],
    DropdownType.PLACEMENT: [
        ("Warehouse A", "warehouse-a"),
        ("Warehouse B", "warehouse-b"),
        ("Workshop", "workshop"),
    ],
}

# 2. Bootstrap administrator
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com").lower()
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "")
ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "Administrator")


def seed_admin(session: Session):
    logger.info("--- Seeding Admin ---")

    if not ADMIN_PASSWORD:
        logger.warning("SEED_ADMIN_PASSWORD not set, skipping admin user")
        return

    admin = session.exec(select(User).where(User.email == ADMIN_EMAIL)).first()
    if admin:
        logger.info(f"Existing admin: {ADMIN_EMAIL}")
        return

    session.add(User(
        email=ADMIN_EMAIL,
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        name=ADMIN_NAME,
        role=UserRole.ADMIN,
    ))
    logger.info(f"Created admin: {ADMIN_EMAIL}")


def seed_dropdowns(session: Session):
    """Creates missing options; existing (type, value) pairs are left untouched."""
    logger.info("--- Seeding Dropdowns ---")

    for dropdown_type, options in DEFAULT_DROPDOWNS.items():
        for label, value in options:
            existing = session.exec(
                select(DropdownOption).where(
                    DropdownOption.type == dropdown_type,
                    DropdownOption.value == value
                )
            ).first()

            if existing:
                logger.info(f"Existing {dropdown_type.value}: {value}")
                continue

            session.add(DropdownOption(
                type=dropdown_type, label=label, value=value))
            logger.info(f"Created {dropdown_type.value}: {label}")


def main():
    # Tables come from `alembic upgrade head`

    with Session(engine) as session:
        try:
            seed_admin(session)
            seed_dropdowns(session)

            session.commit()
            logger.success("Seeding completed successfully!")
        except Exception as e:
            logger.error(f"Seeding failed: {e}")
            session.rollback()
            raise e


if __name__ == "__main__":
    main()
