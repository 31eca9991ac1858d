"""
Service Catalog Service: persistence operations for cloud services
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ReferenceNotFoundError
from app.core.utils import model_to_dict
from app.models.bom import Bom
from app.models.control import ControlMapping
from app.models.service import Service
from app.services.contracts import ServiceReader


class ServiceCatalogService(ServiceReader):
    """CRUD for services and the dict view used by composite records"""

    def __init__(self, db: Session):
        self.db = db

    def list_services(self, limit: int = 100, offset: int = 0) -> List[Service]:
        return self.db.query(Service).order_by(Service.service_id).offset(offset).limit(limit).all()

    def count_services(self) -> int:
        return self.db.query(Service).count()

    def get_service_model(self, service_id: str) -> Service:
        service = self.db.get(Service, service_id) if service_id else None
        if service is None:
            raise ReferenceNotFoundError(f"Service {service_id} not found.")
        return service

    def get_service(self, service_id: str, include_controls: bool = False) -> Dict[str, Any]:
        service = self.get_service_model(service_id)
        data = model_to_dict(service)
        if include_controls:
            seen = set()
            controls = []
            for control in service.controls:
                if control.id not in seen:
                    seen.add(control.id)
                    controls.append(model_to_dict(control))
            data["controls"] = controls
        return data

    def find_by_automation_id(self, automation_id: str) -> List[Service]:
        return (
            self.db.query(Service)
            .filter(Service.cloud_automation_id == automation_id)
            .order_by(Service.service_id)
            .all()
        )

    def create_service(self, data: Dict[str, Any]) -> Service:
        service_id = data["service_id"]
        if self.db.get(Service, service_id) is not None:
            raise ConflictError(f"Service {service_id} already exists.")
        service = Service(**data)
        self.db.add(service)
        self.db.commit()
        self.db.refresh(service)
        return service

    def update_service(self, service_id: str, changes: Dict[str, Any]) -> Service:
        service = self.get_service_model(service_id)
        for key, value in changes.items():
            if key != "service_id":
                setattr(service, key, value)
        self.db.commit()
        self.db.refresh(service)
        return service

    def delete_service(self, service_id: str) -> None:
        service = self.get_service_model(service_id)
        in_use = self.db.query(Bom).filter(Bom.service_id == service_id).count()
        if in_use:
            raise ConflictError(f"Service {service_id} is referenced by {in_use} BOM entries.")
        for mapping in self.db.query(ControlMapping).filter(ControlMapping.service_id == service_id):
            self.db.delete(mapping)
        self.db.delete(service)
        self.db.commit()


def service_display_name(service: Optional[Dict[str, Any]]) -> str:
    """Catalog display name, falling back to the service id"""
    if not service:
        return ""
    return service.get("ibm_catalog_service") or service.get("service_id") or ""
