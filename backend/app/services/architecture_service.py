"""
Architecture Service: persistence operations for reference architectures
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ReferenceNotFoundError
from app.core.logging_config import LoggingConfig
from app.models.architecture import Architecture

logger = LoggingConfig.get_logger(__name__)


class ArchitectureService:
    """CRUD for architectures. Every write commits immediately."""

    def __init__(self, db: Session):
        self.db = db

    def list_architectures(self, limit: int = 100, offset: int = 0) -> List[Architecture]:
        return (
            self.db.query(Architecture)
            .order_by(Architecture.arch_id)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_architectures(self) -> int:
        return self.db.query(Architecture).count()

    def find_architecture(self, arch_id: str) -> Optional[Architecture]:
        return self.db.query(Architecture).filter(Architecture.arch_id == arch_id).first()

    def get_architecture(self, arch_id: str) -> Architecture:
        architecture = self.find_architecture(arch_id)
        if architecture is None:
            raise ReferenceNotFoundError(f"Architecture {arch_id} not found.", architecture=arch_id)
        return architecture

    def create_architecture(self, data: Dict[str, Any]) -> Architecture:
        arch_id = data["arch_id"]
        if self.find_architecture(arch_id) is not None:
            raise ConflictError(f"Architecture {arch_id} already exists.", architecture=arch_id)

        architecture = Architecture(**data)
        self.db.add(architecture)
        self.db.commit()
        self.db.refresh(architecture)
        logger.info(f"Created architecture {arch_id}")
        return architecture

    def create_placeholder(self, arch_id: str) -> Architecture:
        """Architecture created by a BOM import, with placeholder diagram fields"""
        return self.create_architecture({
            "arch_id": arch_id,
            "name": arch_id,
            "short_desc": f"{arch_id} Architecture.",
            "long_desc": f"{arch_id} FS Architecture.",
            "diagram_folder": "placeholder",
            "diagram_link_drawio": "none",
            "diagram_link_png": "placeholder.png",
            "confidential": True,
        })

    def update_architecture(self, arch_id: str, changes: Dict[str, Any]) -> Architecture:
        architecture = self.get_architecture(arch_id)
        for key, value in changes.items():
            if key == "arch_id":
                continue
            setattr(architecture, key, value)
        self.db.commit()
        self.db.refresh(architecture)
        return architecture

    def delete_architecture(self, arch_id: str) -> None:
        architecture = self.get_architecture(arch_id)
        self.db.delete(architecture)
        self.db.commit()
        logger.info(f"Deleted architecture {arch_id}")
