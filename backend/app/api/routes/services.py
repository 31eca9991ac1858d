"""
API routes for the service catalog
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.routes.boms import CountResponse
from app.core.database import get_db
from app.services.catalog_service import CatalogService, get_catalog_service
from app.services.service_catalog_service import ServiceCatalogService

router = APIRouter(prefix="/services", tags=["services"])


class ServiceResponse(BaseModel):
    """Service response model"""
    service_id: str
    ibm_catalog_id: Optional[str] = None
    ibm_catalog_service: Optional[str] = None
    cloud_automation_id: Optional[str] = None
    desc: Optional[str] = None
    grouping: Optional[str] = None
    deployment_method: Optional[str] = None
    provision: Optional[str] = None

    class Config:
        from_attributes = True


class CreateServiceRequest(ServiceResponse):
    service_id: str = Field(..., description="Service identifier")


class UpdateServiceRequest(BaseModel):
    ibm_catalog_id: Optional[str] = None
    ibm_catalog_service: Optional[str] = None
    cloud_automation_id: Optional[str] = None
    desc: Optional[str] = None
    grouping: Optional[str] = None
    deployment_method: Optional[str] = None
    provision: Optional[str] = None


@router.get("", response_model=List[ServiceResponse])
async def list_services(limit: int = 100, offset: int = 0, db: Session = Depends(get_db)):
    return ServiceCatalogService(db).list_services(limit=limit, offset=offset)


@router.get("/count", response_model=CountResponse)
async def count_services(db: Session = Depends(get_db)):
    return {"count": ServiceCatalogService(db).count_services()}


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(request: CreateServiceRequest, db: Session = Depends(get_db)):
    return ServiceCatalogService(db).create_service(request.model_dump())


@router.post("/catalog/refresh", status_code=status.HTTP_204_NO_CONTENT)
async def refresh_catalogs(catalog: CatalogService = Depends(get_catalog_service)):
    """Drop cached module and global catalog data"""
    catalog.refresh()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{service_id}")
async def get_service(
    service_id: str, include_controls: bool = False, db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Service record, optionally with the controls mapped to it"""
    return ServiceCatalogService(db).get_service(service_id, include_controls=include_controls)


@router.get("/{service_id}/catalog")
async def get_service_catalog(
    service_id: str,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Optional[Dict[str, Any]]:
    """Global catalog entry of the service"""
    service = ServiceCatalogService(db).get_service(service_id)
    return await catalog.catalog_by_service(service)


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(service_id: str, request: UpdateServiceRequest, db: Session = Depends(get_db)):
    return ServiceCatalogService(db).update_service(service_id, request.model_dump(exclude_unset=True))


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(service_id: str, db: Session = Depends(get_db)):
    """Delete a service; refused while BOM entries reference it"""
    ServiceCatalogService(db).delete_service(service_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
