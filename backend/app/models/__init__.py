"""
SQLAlchemy models
"""
from app.core.database import Base
from app.models.architecture import Architecture  # noqa: F401
from app.models.bom import Bom  # noqa: F401
from app.models.control import (Control, ControlMapping, Goal,  # noqa: F401
                                Profile, control_mapping_goals)
from app.models.service import Service  # noqa: F401

__all__ = [
    "Base",
    "Architecture",
    "Bom",
    "Control",
    "ControlMapping",
    "Goal",
    "Profile",
    "Service",
    "control_mapping_goals",
]
