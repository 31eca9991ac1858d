"""
FastAPI dependencies wiring the services together per request
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.architecture_service import ArchitectureService
from app.services.bom_import_service import BomImportService
from app.services.bom_service import BomService
from app.services.catalog_service import CatalogService, get_catalog_service
from app.services.compliance_report_service import ComplianceReportService
from app.services.composite_service import CompositeService
from app.services.control_mapping_service import ControlMappingService
from app.services.service_catalog_service import ServiceCatalogService


def get_composite_service(
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
) -> CompositeService:
    return CompositeService(BomService(db), ServiceCatalogService(db), catalog)


def get_import_service(
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
) -> BomImportService:
    return BomImportService(db, catalog)


def get_report_service(
    db: Session = Depends(get_db),
    composite: CompositeService = Depends(get_composite_service),
) -> ComplianceReportService:
    return ComplianceReportService(
        ArchitectureService(db), composite, ControlMappingService(db)
    )
