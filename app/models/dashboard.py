from typing import List

from app.models.base import CamelModel
from app.models.material import MaterialRead


class DivisionCount(CamelModel):
    """Active materials in one division."""
    division: str
    count: int


class DashboardStats(CamelModel):
    """KPIs for the top of the dashboard"""
    total_materials: int
    active_materials: int
    total_divisions: int
    materials_by_division: List[DivisionCount]
    recent_materials: List[MaterialRead]
