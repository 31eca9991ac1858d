"""
Service catalog model
"""
from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from app.core.database import Base


class Service(Base):
    """Cloud service that BOM entries resolve to"""
    __tablename__ = "services"

    service_id = Column(String(255), primary_key=True)
    ibm_catalog_id = Column(String(255), nullable=True)  # Global catalog entry
    ibm_catalog_service = Column(String(255), nullable=True)  # Display name
    cloud_automation_id = Column(String(255), nullable=True, index=True)  # Module catalog id
    desc = Column(Text, nullable=True)
    grouping = Column(String(255), nullable=True)
    deployment_method = Column(String(255), nullable=True)
    provision = Column(String(255), nullable=True)

    controls = relationship(
        "Control",
        secondary="control_mappings",
        viewonly=True,
        order_by="Control.id",
    )

    def __repr__(self):
        return f"<Service(service_id={self.service_id}, cloud_automation_id={self.cloud_automation_id})>"
