"""
Bill of materials entry model
"""
from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.database import Base


class Bom(Base):
    """One automation module of an architecture, resolved to a service"""
    __tablename__ = "boms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    arch_id = Column(String(255), ForeignKey("architectures.arch_id"), nullable=False, index=True)
    service_id = Column(String(255), ForeignKey("services.service_id"), nullable=False, index=True)
    desc = Column(Text, nullable=True)
    # YAML blob with the present subset of {alias, variables, dependencies}
    automation_variables = Column(Text, nullable=True)

    architecture = relationship("Architecture", back_populates="boms")
    service = relationship("Service")

    def __repr__(self):
        return f"<Bom(id={self.id}, arch_id={self.arch_id}, service_id={self.service_id})>"
