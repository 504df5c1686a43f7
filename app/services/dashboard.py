from sqlmodel import Session, select, func

from app.db.schema import User, Material, DropdownOption, DropdownType
from app.models.dashboard import DashboardStats, DivisionCount
from app.services.material import MATERIAL_LOAD_OPTIONS, to_material_read


RECENT_MATERIALS_LIMIT = 12


class DashboardService:
    def __init__(self, session: Session):
        self.session = session

    def get_dashboard_stats(self, user: User) -> DashboardStats:
        """
        Calculates aggregate KPIs for the dashboard.
        """
        # 1. Material counts
        total_materials = self.session.exec(
            select(func.count(Material.id))
        ).one()

        active_materials = self.session.exec(
            select(func.count(Material.id)).where(Material.is_active == True)
        ).one()

        # 2. Active materials per division, label joined from the vocabulary
        count_col = func.count(Material.id).label("count")
        by_division = self.session.exec(
            select(DropdownOption.label, count_col)
            .select_from(Material)
            .join(DropdownOption, Material.division_id == DropdownOption.id)
            .where(Material.is_active == True)
            .group_by(DropdownOption.id, DropdownOption.label)
            .order_by(count_col.desc(), DropdownOption.label.asc())
        ).all()

        # 3. Latest materials regardless of status
        recent = self.session.exec(
            select(Material)
            .options(*MATERIAL_LOAD_OPTIONS)
            .order_by(Material.created_at.desc())
            .limit(RECENT_MATERIALS_LIMIT)
        ).all()

        # 4. Vocabulary size
        total_divisions = self.session.exec(
            select(func.count(DropdownOption.id))
            .where(DropdownOption.type == DropdownType.DIVISION)
        ).one()

        return DashboardStats(
            total_materials=total_materials,
            active_materials=active_materials,
            total_divisions=total_divisions,
            materials_by_division=[
                DivisionCount(division=label, count=count)
                for label, count in by_division
            ],
            recent_materials=[to_material_read(m) for m in recent],
        )
