"""
Architecture model (reference architectures owning a bill of materials)
"""
from sqlalchemy import Boolean, Column, String, Text
from sqlalchemy.orm import relationship

from app.core.database import Base


class Architecture(Base):
    """Reference architecture, keyed by its user supplied arch_id"""
    __tablename__ = "architectures"

    arch_id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    short_desc = Column(Text, nullable=True)
    long_desc = Column(Text, nullable=True)
    diagram_folder = Column(String(255), nullable=True)
    diagram_link_drawio = Column(String(255), nullable=True)
    diagram_link_png = Column(String(255), nullable=True)
    automation_variables = Column(Text, nullable=True)  # YAML blob of global variables
    confidential = Column(Boolean, nullable=False, default=True)

    boms = relationship(
        "Bom",
        back_populates="architecture",
        order_by="Bom.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Architecture(arch_id={self.arch_id}, name={self.name})>"
