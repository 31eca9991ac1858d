"""
API routes for compliance controls, profiles and control mappings
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.control_mapping_service import ControlMappingService

router = APIRouter(tags=["controls"])


class ControlResponse(BaseModel):
    """Control response model"""
    id: str
    name: Optional[str] = None
    family: Optional[str] = None
    parent_control: Optional[str] = None
    description: Optional[str] = None
    parameters: Optional[str] = None
    implementation: Optional[str] = None

    class Config:
        from_attributes = True


class ProfileResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class GoalRequest(BaseModel):
    goal_id: str
    description: Optional[str] = None


class CreateMappingRequest(BaseModel):
    """Request model for mapping a control to a service"""
    control_id: str = Field(..., description="Mapped control")
    service_id: str = Field(..., description="Service implementing the control")
    scc_profile: Optional[str] = Field(None, description="Compliance profile id")
    comment: Optional[str] = None
    goals: List[GoalRequest] = Field(default_factory=list)


# Controls

@router.get("/controls", response_model=List[ControlResponse])
async def list_controls(limit: int = 100, offset: int = 0, db: Session = Depends(get_db)):
    return ControlMappingService(db).list_controls(limit=limit, offset=offset)


@router.post("/controls", response_model=ControlResponse, status_code=status.HTTP_201_CREATED)
async def create_control(request: ControlResponse, db: Session = Depends(get_db)):
    return ControlMappingService(db).create_control(request.model_dump())


@router.get("/controls/{control_id}", response_model=ControlResponse)
async def get_control(control_id: str, db: Session = Depends(get_db)):
    return ControlMappingService(db).get_control(control_id)


# Profiles

@router.get("/profiles", response_model=List[ProfileResponse])
async def list_profiles(db: Session = Depends(get_db)):
    return ControlMappingService(db).list_profiles()


@router.post("/profiles", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(request: ProfileResponse, db: Session = Depends(get_db)):
    return ControlMappingService(db).create_profile(request.model_dump())


# Mappings

@router.get("/control-mappings")
async def list_mappings(
    service_id: Optional[str] = None,
    scc_profile: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    """Mappings with their control, profile and goals"""
    return ControlMappingService(db).list_mappings(
        service_id=service_id, profile_id=scc_profile, limit=limit
    )


@router.post("/control-mappings", status_code=status.HTTP_201_CREATED)
async def create_mapping(request: CreateMappingRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ControlMappingService(db).create_mapping(request.model_dump())


@router.delete("/control-mappings/{mapping_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mapping(mapping_id: int, db: Session = Depends(get_db)):
    ControlMappingService(db).delete_mapping(mapping_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
