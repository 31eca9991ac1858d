"""
BOM Import Service: turns uploaded BOM documents into architectures and BOM entries.

Files are processed one at a time and modules one at a time inside a file;
the first failure stops the batch. Writes commit as they happen, so entries
created for earlier modules (or earlier files) stay in place when a later
module fails.
"""
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import (ConflictError, ExternalValidationError,
                             ReferenceNotFoundError)
from app.core.logging_config import LoggingConfig
from app.core.metrics import bom_documents_total, bom_modules_imported_total
from app.models.architecture import Architecture
from app.models.bom import Bom
from app.services.architecture_service import ArchitectureService
from app.services.bom_parser import (BomDocument, BomModule, UploadedFile,
                                     check_uploads, decode_upload, dump_yaml,
                                     parse_bom)
from app.services.bom_service import BomService
from app.services.catalog_service import CatalogService
from app.services.service_catalog_service import ServiceCatalogService

logger = LoggingConfig.get_logger(__name__)


class BomImportService:
    """
    Orchestrates BOM imports.

    Per document:
    1. resolve the architecture named by metadata.name, creating it if missing
    2. refuse an existing architecture unless overwrite was requested
    3. delete the architecture's current BOM entries
    4. store spec.variables on the architecture
    5. per module: validate against the module catalog, resolve the service
       by automation id, then create the BOM entry
    """

    def __init__(
        self,
        db: Session,
        catalog_service: CatalogService,
        allowed_mimetypes: Optional[Iterable[str]] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        settings = get_settings()
        self.db = db
        self.catalog_service = catalog_service
        self.architectures = ArchitectureService(db)
        self.boms = BomService(db)
        self.services = ServiceCatalogService(db)
        self.allowed_mimetypes = list(allowed_mimetypes or settings.bom_allowed_mimetypes_list)
        self.max_upload_bytes = max_upload_bytes or settings.bom_upload_max_bytes

    async def import_boms(self, files: List[UploadedFile], overwrite: bool = False) -> int:
        """Import every uploaded document, returning how many were imported"""
        uploads = check_uploads(files, self.allowed_mimetypes, self.max_upload_bytes)

        imported = 0
        for upload in uploads:
            try:
                document = parse_bom(decode_upload(upload))
                await self.import_document(document, overwrite=overwrite)
            except Exception:
                bom_documents_total.labels(status="failed").inc()
                raise
            imported += 1
            bom_documents_total.labels(status="imported").inc()
        return imported

    async def import_document(self, document: BomDocument, overwrite: bool = False) -> Architecture:
        arch_id = document.name
        architecture = self.architectures.find_architecture(arch_id)
        if architecture is not None and not overwrite:
            raise ConflictError(
                f"Architecture {arch_id} already exists. Set 'overwrite' parameter to overwrite.",
                architecture=arch_id,
            )
        if architecture is None:
            architecture = self.architectures.create_placeholder(arch_id)

        self.boms.delete_for_architecture(arch_id)

        global_variables = {"variables": document.variables} if document.variables is not None else {}
        self.architectures.update_architecture(
            arch_id, {"automation_variables": dump_yaml(global_variables)}
        )

        for module in document.modules:
            await self._import_module(arch_id, module)

        logger.info(
            f"Imported BOM for architecture {arch_id}",
            extra={"architecture": arch_id, "modules": len(document.modules)},
        )
        return architecture

    async def _import_module(self, arch_id: str, module: BomModule) -> Bom:
        try:
            await self.catalog_service.validate_module_config(module.name, dump_yaml(module.raw))
        except ExternalValidationError as e:
            logger.warning(f"Module {module.name} rejected by the module catalog: {e.message}")
            raise ExternalValidationError(
                f"YAML module config error for module {module.name}",
                architecture=arch_id,
                details=e,
            ) from e

        services = self.services.find_by_automation_id(module.name)
        if not services:
            raise ReferenceNotFoundError(
                f"No service matching automation ID {module.name}",
                architecture=arch_id,
            )

        config = module.automation_config()
        bom = self.boms.create_for_architecture(arch_id, {
            "service_id": services[0].service_id,
            "desc": module.description,
            "automation_variables": dump_yaml(config) if config else None,
        })
        bom_modules_imported_total.inc()
        return bom

    async def validate_entry_variables(self, service_id: str, automation_variables: str) -> None:
        """Validate a BOM entry's automation_variables against its service's module"""
        service = self.services.get_service_model(service_id)
        if not service.cloud_automation_id:
            raise ExternalValidationError(
                f"Service {service.ibm_catalog_service or service.service_id} is missing automation ID."
            )
        await self.catalog_service.validate_module_config(
            service.cloud_automation_id, automation_variables
        )
