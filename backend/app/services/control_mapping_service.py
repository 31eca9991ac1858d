"""
Control Mapping Service: controls, profiles, goals and their mappings to services
"""
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from app.core.errors import ConflictError, ReferenceNotFoundError
from app.core.utils import model_to_dict
from app.models.control import Control, ControlMapping, Goal, Profile
from app.models.service import Service
from app.services.contracts import ControlMappingReader


def mapping_to_dict(mapping: ControlMapping) -> Dict[str, Any]:
    """Mapping with its control, profile and goals included"""
    data = model_to_dict(mapping)
    data["control"] = model_to_dict(mapping.control) if mapping.control else None
    data["profile"] = model_to_dict(mapping.profile) if mapping.profile else None
    data["goals"] = [model_to_dict(goal) for goal in mapping.goals]
    return data


class ControlMappingService(ControlMappingReader):

    def __init__(self, db: Session):
        self.db = db

    # Mappings

    def find_mappings(
        self,
        service_ids: Iterable[str],
        profile_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        service_ids = list(service_ids)
        if not service_ids:
            return []
        query = (
            self.db.query(ControlMapping)
            .options(
                selectinload(ControlMapping.control),
                selectinload(ControlMapping.profile),
                selectinload(ControlMapping.goals),
            )
            .filter(ControlMapping.service_id.in_(service_ids))
        )
        if profile_id is not None:
            query = query.filter(ControlMapping.scc_profile == profile_id)
        return [mapping_to_dict(m) for m in query.order_by(ControlMapping.id).all()]

    def list_mappings(
        self,
        service_id: Optional[str] = None,
        profile_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        query = self.db.query(ControlMapping)
        if service_id is not None:
            query = query.filter(ControlMapping.service_id == service_id)
        if profile_id is not None:
            query = query.filter(ControlMapping.scc_profile == profile_id)
        return [mapping_to_dict(m) for m in query.order_by(ControlMapping.id).limit(limit).all()]

    def create_mapping(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a mapping; goals are given as {goal_id, description} and upserted"""
        goals = {g["goal_id"]: g for g in data.pop("goals", None) or []}.values()
        if self.db.get(Service, data["service_id"]) is None:
            raise ReferenceNotFoundError(f"Service {data['service_id']} not found.")
        if self.db.get(Control, data["control_id"]) is None:
            raise ReferenceNotFoundError(f"Control {data['control_id']} not found.")
        if data.get("scc_profile") and self.db.get(Profile, data["scc_profile"]) is None:
            raise ReferenceNotFoundError(f"Profile {data['scc_profile']} not found.")

        mapping = ControlMapping(**data)
        for goal_data in goals:
            goal = self.db.get(Goal, goal_data["goal_id"])
            if goal is None:
                goal = Goal(**goal_data)
                self.db.add(goal)
            elif goal_data.get("description"):
                goal.description = goal_data["description"]
            mapping.goals.append(goal)

        self.db.add(mapping)
        self.db.commit()
        self.db.refresh(mapping)
        return mapping_to_dict(mapping)

    def delete_mapping(self, mapping_id: int) -> None:
        mapping = self.db.get(ControlMapping, mapping_id)
        if mapping is None:
            raise ReferenceNotFoundError(f"Control mapping {mapping_id} not found.")
        self.db.delete(mapping)
        self.db.commit()

    # Controls

    def list_controls(self, limit: int = 100, offset: int = 0) -> List[Control]:
        return self.db.query(Control).order_by(Control.id).offset(offset).limit(limit).all()

    def get_control(self, control_id: str) -> Control:
        control = self.db.get(Control, control_id)
        if control is None:
            raise ReferenceNotFoundError(f"Control {control_id} not found.")
        return control

    def create_control(self, data: Dict[str, Any]) -> Control:
        if self.db.get(Control, data["id"]) is not None:
            raise ConflictError(f"Control {data['id']} already exists.")
        control = Control(**data)
        self.db.add(control)
        self.db.commit()
        self.db.refresh(control)
        return control

    # Profiles

    def list_profiles(self) -> List[Profile]:
        return self.db.query(Profile).order_by(Profile.id).all()

    def create_profile(self, data: Dict[str, Any]) -> Profile:
        if self.db.get(Profile, data["id"]) is not None:
            raise ConflictError(f"Profile {data['id']} already exists.")
        profile = Profile(**data)
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile
