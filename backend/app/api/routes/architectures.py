"""
API routes for architectures, their BOM entries, BOM import and compliance reports
"""
from typing import List, Optional

from fastapi import (APIRouter, Depends, File, HTTPException, Query,
                     UploadFile, status)
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.dependencies import get_import_service, get_report_service
from app.api.routes.boms import (BomEntryRequest, BomResponse, CountResponse,
                                 UpdateBomRequest)
from app.core.database import get_db
from app.core.errors import ArchitectureBomError
from app.core.logging_config import LoggingConfig
from app.services.architecture_service import ArchitectureService
from app.services.bom_import_service import BomImportService
from app.services.bom_parser import UploadedFile
from app.services.bom_service import BomService
from app.services.compliance_report_service import ComplianceReportService

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(prefix="/architectures", tags=["architectures"])


class ArchitectureResponse(BaseModel):
    """Architecture response model"""
    arch_id: str
    name: str
    short_desc: Optional[str] = None
    long_desc: Optional[str] = None
    diagram_folder: Optional[str] = None
    diagram_link_drawio: Optional[str] = None
    diagram_link_png: Optional[str] = None
    automation_variables: Optional[str] = None
    confidential: bool = True

    class Config:
        from_attributes = True


class CreateArchitectureRequest(ArchitectureResponse):
    """Request model for creating an architecture"""


class UpdateArchitectureRequest(BaseModel):
    """Partial update; arch_id cannot change"""
    name: Optional[str] = None
    short_desc: Optional[str] = None
    long_desc: Optional[str] = None
    diagram_folder: Optional[str] = None
    diagram_link_drawio: Optional[str] = None
    diagram_link_png: Optional[str] = None
    automation_variables: Optional[str] = None
    confidential: Optional[bool] = None


def _error_response(payload: dict, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": payload})


# Architectures

@router.get("", response_model=List[ArchitectureResponse])
async def list_architectures(limit: int = 100, offset: int = 0, db: Session = Depends(get_db)):
    return ArchitectureService(db).list_architectures(limit=limit, offset=offset)


@router.get("/count", response_model=CountResponse)
async def count_architectures(db: Session = Depends(get_db)):
    return {"count": ArchitectureService(db).count_architectures()}


@router.post("", response_model=ArchitectureResponse, status_code=status.HTTP_201_CREATED)
async def create_architecture(request: CreateArchitectureRequest, db: Session = Depends(get_db)):
    return ArchitectureService(db).create_architecture(request.model_dump())


@router.post("/boms/import")
async def import_boms(
    files: List[UploadFile] = File(..., description="BOM YAML documents"),
    overwrite: bool = Query(False, description="Replace architectures that already exist"),
    importer: BomImportService = Depends(get_import_service),
):
    """
    Import BOM documents.

    Every failure answers 400 with `{"error": {message, architecture?, details?}}`.
    Documents imported before the failing one stay imported.
    """
    uploads = []
    for upload in files:
        buffer = await upload.read()
        uploads.append(UploadedFile(
            mimetype=upload.content_type or "",
            buffer=buffer,
            size=len(buffer),
            filename=upload.filename,
        ))

    try:
        count = await importer.import_boms(uploads, overwrite=overwrite)
    except ArchitectureBomError as e:
        logger.warning(
            f"BOM import failed: {e.message}",
            extra={"architecture": e.architecture, "error_kind": e.kind.value},
        )
        return _error_response(e.to_dict())
    except Exception as e:
        logger.error(f"Unexpected BOM import failure: {e}", exc_info=True)
        return _error_response({"message": str(e)})

    return {"count": count}


@router.get("/{arch_id}", response_model=ArchitectureResponse)
async def get_architecture(arch_id: str, db: Session = Depends(get_db)):
    return ArchitectureService(db).get_architecture(arch_id)


@router.patch("/{arch_id}", response_model=ArchitectureResponse)
async def update_architecture(
    arch_id: str, request: UpdateArchitectureRequest, db: Session = Depends(get_db)
):
    return ArchitectureService(db).update_architecture(arch_id, request.model_dump(exclude_unset=True))


@router.delete("/{arch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_architecture(arch_id: str, db: Session = Depends(get_db)):
    """Delete an architecture together with its BOM entries"""
    ArchitectureService(db).delete_architecture(arch_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Architecture-scoped BOM entries

@router.get("/{arch_id}/boms", response_model=List[BomResponse])
async def list_architecture_boms(
    arch_id: str, service_id: Optional[str] = None, db: Session = Depends(get_db)
):
    return BomService(db).find_for_architecture(arch_id, service_id=service_id)


@router.post("/{arch_id}/boms", response_model=BomResponse, status_code=status.HTTP_201_CREATED)
async def create_architecture_bom(
    arch_id: str,
    request: BomEntryRequest,
    db: Session = Depends(get_db),
    importer: BomImportService = Depends(get_import_service),
):
    """Create a BOM entry; automation_variables is validated against the module catalog"""
    ArchitectureService(db).get_architecture(arch_id)
    if request.automation_variables:
        try:
            await importer.validate_entry_variables(request.service_id, request.automation_variables)
        except ArchitectureBomError as e:
            logger.warning(
                f"Automation variables rejected for architecture {arch_id}: {e.message}",
                extra={"architecture": arch_id, "service_id": request.service_id},
            )
            return _error_response({
                "message": "YAML automation variables config error.",
                "details": e.to_dict(),
            })
    return BomService(db).create_for_architecture(arch_id, request.model_dump())


@router.patch("/{arch_id}/boms", response_model=CountResponse)
async def patch_architecture_boms(
    arch_id: str,
    request: UpdateBomRequest,
    service_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    changes = request.model_dump(exclude_unset=True)
    return {"count": BomService(db).patch_for_architecture(arch_id, changes, service_id=service_id)}


@router.delete("/{arch_id}/boms", response_model=CountResponse)
async def delete_architecture_boms(
    arch_id: str, service_id: Optional[str] = None, db: Session = Depends(get_db)
):
    return {"count": BomService(db).delete_for_architecture(arch_id, service_id=service_id)}


# Reports

@router.get("/{arch_id}/compliance-report")
async def compliance_report(
    arch_id: str,
    profile: Optional[str] = Query(None, description="Compliance profile id"),
    reports: ComplianceReportService = Depends(get_report_service),
):
    """Compliance report PDF: BOM, services and the controls mapped to them"""
    if profile is not None and not profile.strip():
        raise HTTPException(status_code=400, detail="profile must not be empty")
    pdf = await reports.render_compliance_report(arch_id, profile_id=profile)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{arch_id}-compliance-report.pdf"'},
    )
