"""
BOM Service: persistence operations for bill of materials entries
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Query, Session

from app.core.errors import ReferenceNotFoundError
from app.core.logging_config import LoggingConfig
from app.models.architecture import Architecture
from app.models.bom import Bom
from app.models.service import Service

logger = LoggingConfig.get_logger(__name__)

_IMMUTABLE_FIELDS = {"id"}


class BomService:
    """
    CRUD for BOM entries, plus the architecture-scoped variants used by
    the /architectures/{id}/boms routes and the import orchestrator.

    Every write commits immediately.
    """

    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, arch_id: Optional[str] = None, service_id: Optional[str] = None) -> Query:
        query = self.db.query(Bom)
        if arch_id is not None:
            query = query.filter(Bom.arch_id == arch_id)
        if service_id is not None:
            query = query.filter(Bom.service_id == service_id)
        return query

    def _ensure_service(self, service_id: Optional[str]) -> None:
        if not service_id or self.db.get(Service, service_id) is None:
            raise ReferenceNotFoundError(f"Service {service_id} not found.")

    def _ensure_architecture(self, arch_id: Optional[str]) -> None:
        if not arch_id or self.db.get(Architecture, arch_id) is None:
            raise ReferenceNotFoundError(f"Architecture {arch_id} not found.", architecture=arch_id)

    def list_boms(
        self,
        arch_id: Optional[str] = None,
        service_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Bom]:
        query = self._filtered(arch_id, service_id).order_by(Bom.id).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_boms(self, arch_id: Optional[str] = None, service_id: Optional[str] = None) -> int:
        return self._filtered(arch_id, service_id).count()

    def get_bom(self, bom_id: int) -> Bom:
        bom = self.db.get(Bom, bom_id)
        if bom is None:
            raise ReferenceNotFoundError(f"Bom {bom_id} not found.")
        return bom

    def create_bom(self, data: Dict[str, Any]) -> Bom:
        """Create an entry after checking its service exists"""
        self._ensure_service(data.get("service_id"))
        self._ensure_architecture(data.get("arch_id"))
        bom = Bom(**data)
        self.db.add(bom)
        self.db.commit()
        self.db.refresh(bom)
        return bom

    def update_bom(self, bom_id: int, changes: Dict[str, Any]) -> Bom:
        bom = self.get_bom(bom_id)
        if "service_id" in changes:
            self._ensure_service(changes["service_id"])
        for key, value in changes.items():
            if key not in _IMMUTABLE_FIELDS:
                setattr(bom, key, value)
        self.db.commit()
        self.db.refresh(bom)
        return bom

    def update_boms(
        self,
        changes: Dict[str, Any],
        arch_id: Optional[str] = None,
        service_id: Optional[str] = None,
    ) -> int:
        """Patch every matching entry, returning how many were updated"""
        changes = {k: v for k, v in changes.items() if k not in _IMMUTABLE_FIELDS}
        if not changes:
            return 0
        if "service_id" in changes:
            self._ensure_service(changes["service_id"])
        count = self._filtered(arch_id, service_id).update(changes, synchronize_session=False)
        self.db.commit()
        return count

    def delete_bom(self, bom_id: int) -> None:
        bom = self.get_bom(bom_id)
        self.db.delete(bom)
        self.db.commit()

    # Architecture-scoped variants

    def find_for_architecture(self, arch_id: str, service_id: Optional[str] = None) -> List[Bom]:
        return self.list_boms(arch_id=arch_id, service_id=service_id)

    def create_for_architecture(self, arch_id: str, data: Dict[str, Any]) -> Bom:
        return self.create_bom({**data, "arch_id": arch_id})

    def patch_for_architecture(
        self, arch_id: str, changes: Dict[str, Any], service_id: Optional[str] = None
    ) -> int:
        changes = {k: v for k, v in changes.items() if k != "arch_id"}
        return self.update_boms(changes, arch_id=arch_id, service_id=service_id)

    def delete_for_architecture(self, arch_id: str, service_id: Optional[str] = None) -> int:
        """Delete the architecture's entries; no-op when it has none"""
        count = self._filtered(arch_id, service_id).delete(synchronize_session=False)
        self.db.commit()
        if count:
            logger.info(f"Deleted {count} BOM entries of architecture {arch_id}")
        return count
