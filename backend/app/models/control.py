"""
Compliance controls, profiles, goals and their mapping to services
"""
from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from app.core.database import Base

control_mapping_goals = Table(
    "control_mapping_goals",
    Base.metadata,
    Column("mapping_id", Integer, ForeignKey("control_mappings.id", ondelete="CASCADE"), primary_key=True),
    Column("goal_id", String(255), ForeignKey("goals.goal_id"), primary_key=True),
)


class Control(Base):
    """Compliance control (e.g. AC-2)"""
    __tablename__ = "controls"

    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=True)
    family = Column(String(255), nullable=True)
    parent_control = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    parameters = Column(Text, nullable=True)
    implementation = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Control(id={self.id}, name={self.name})>"


class Profile(Base):
    """Named compliance profile that filters control mappings"""
    __tablename__ = "profiles"

    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)


class Goal(Base):
    """Automated check backing a control"""
    __tablename__ = "goals"

    goal_id = Column(String(255), primary_key=True)
    description = Column(Text, nullable=True)


class ControlMapping(Base):
    """Links a service and profile to a control and the goals checking it"""
    __tablename__ = "control_mappings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    control_id = Column(String(255), ForeignKey("controls.id"), nullable=False, index=True)
    service_id = Column(String(255), ForeignKey("services.service_id"), nullable=False, index=True)
    scc_profile = Column(String(255), ForeignKey("profiles.id"), nullable=True, index=True)
    comment = Column(Text, nullable=True)

    control = relationship("Control")
    profile = relationship("Profile")
    goals = relationship("Goal", secondary=control_mapping_goals, order_by="Goal.goal_id")

    def __repr__(self):
        return f"<ControlMapping(id={self.id}, control_id={self.control_id}, service_id={self.service_id})>"
