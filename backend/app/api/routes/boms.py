"""
API routes for bill-of-materials entries
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.dependencies import get_composite_service, get_report_service
from app.core.database import get_db
from app.core.logging_config import LoggingConfig
from app.services.bom_service import BomService
from app.services.compliance_report_service import ComplianceReportService
from app.services.composite_service import CompositeService

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(prefix="/boms", tags=["boms"])


class BomResponse(BaseModel):
    """BOM entry response model"""
    id: int
    arch_id: str
    service_id: str
    desc: Optional[str] = None
    automation_variables: Optional[str] = None

    class Config:
        from_attributes = True


class BomEntryRequest(BaseModel):
    """BOM entry fields when the architecture comes from the path"""
    service_id: str = Field(..., description="Service the entry refers to")
    desc: Optional[str] = Field(None, description="Entry description (module alias)")
    automation_variables: Optional[str] = Field(None, description="YAML automation config")


class CreateBomRequest(BomEntryRequest):
    arch_id: str = Field(..., description="Owning architecture")


class UpdateBomRequest(BaseModel):
    """Partial update; unset fields are left untouched"""
    service_id: Optional[str] = None
    desc: Optional[str] = None
    automation_variables: Optional[str] = None


class CountResponse(BaseModel):
    count: int


@router.post("", response_model=BomResponse, status_code=status.HTTP_201_CREATED)
async def create_bom(request: CreateBomRequest, db: Session = Depends(get_db)):
    """Create a BOM entry"""
    return BomService(db).create_bom(request.model_dump())


@router.get("/count", response_model=CountResponse)
async def count_boms(
    arch_id: Optional[str] = None,
    service_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return {"count": BomService(db).count_boms(arch_id=arch_id, service_id=service_id)}


@router.get("", response_model=List[BomResponse])
async def list_boms(
    arch_id: Optional[str] = None,
    service_id: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    """List BOM entries in creation order"""
    return BomService(db).list_boms(arch_id=arch_id, service_id=service_id, limit=limit, offset=offset)


@router.patch("", response_model=CountResponse)
async def update_boms(
    request: UpdateBomRequest,
    arch_id: Optional[str] = None,
    service_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Patch every entry matching the filter"""
    changes = request.model_dump(exclude_unset=True)
    return {"count": BomService(db).update_boms(changes, arch_id=arch_id, service_id=service_id)}


@router.get("/catalog/{bom_id}")
async def catalog_by_bom(
    bom_id: int,
    composite: CompositeService = Depends(get_composite_service),
) -> Dict[str, Any]:
    """BOM entry flattened with its service and catalog entry"""
    return await composite.catalog_by_bom(bom_id)


@router.get("/services/{arch_id}")
async def composite_by_architecture(
    arch_id: str,
    composite: CompositeService = Depends(get_composite_service),
) -> List[Dict[str, Any]]:
    """Every BOM entry of the architecture with its service, automation and catalog"""
    return await composite.composite_architecture(arch_id)


@router.get("/{arch_id}/compliance-report")
async def markdown_compliance_report(
    arch_id: str,
    reports: ComplianceReportService = Depends(get_report_service),
):
    """Service list report rendered from markdown"""
    pdf = await reports.render_markdown_report(arch_id)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{arch_id}-compliance-report.pdf"'},
    )


@router.get("/{bom_id}/composite")
async def composite_bom(
    bom_id: int,
    composite: CompositeService = Depends(get_composite_service),
) -> Dict[str, Any]:
    """BOM entry with its service (and controls), automation and catalog"""
    return await composite.composite_bom(bom_id)


@router.get("/{bom_id}", response_model=BomResponse)
async def get_bom(bom_id: int, db: Session = Depends(get_db)):
    return BomService(db).get_bom(bom_id)


@router.patch("/{bom_id}", response_model=BomResponse)
async def update_bom(bom_id: int, request: UpdateBomRequest, db: Session = Depends(get_db)):
    return BomService(db).update_bom(bom_id, request.model_dump(exclude_unset=True))


@router.delete("/{bom_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bom(bom_id: int, db: Session = Depends(get_db)):
    BomService(db).delete_bom(bom_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
