"""
Composite Service: BOM entries enriched with service, automation module and
catalog data.

Each source is fetched independently. A source that fails is logged and left
out of the record; the record itself is always returned.
"""
import asyncio
from typing import Any, Dict, List, Optional

from app.core.errors import ArchitectureBomError
from app.core.logging_config import LoggingConfig
from app.core.metrics import composite_source_failures_total
from app.core.utils import deep_merge, model_to_dict
from app.services.bom_service import BomService
from app.services.contracts import CatalogReader, ServiceReader

logger = LoggingConfig.get_logger(__name__)


def _reason(error: Exception) -> str:
    if isinstance(error, ArchitectureBomError):
        return error.message
    return f"{type(error).__name__}: {error}"


class CompositeService:
    """Builds composite BOM records from injected read-only collaborators"""

    def __init__(self, boms: BomService, services: ServiceReader, catalog: CatalogReader):
        self.boms = boms
        self.services = services
        self.catalog = catalog

    async def composite_bom(self, bom_id: int) -> Dict[str, Any]:
        """One BOM entry with its service (and its controls), automation and catalog"""
        record = model_to_dict(self.boms.get_bom(bom_id))
        return await self._enrich(record, include_controls=True)

    async def composite_architecture(self, arch_id: str) -> List[Dict[str, Any]]:
        """Every BOM entry of the architecture, enriched, in BOM order"""
        records = [model_to_dict(bom) for bom in self.boms.find_for_architecture(arch_id)]
        return list(await asyncio.gather(*(self._enrich(record) for record in records)))

    async def catalog_by_bom(self, bom_id: int) -> Dict[str, Any]:
        """BOM entry flattened with its service then its catalog entry.

        On key collisions the catalog value wins over the service value,
        which wins over the BOM value.
        """
        record = model_to_dict(self.boms.get_bom(bom_id))
        service = self._fetch_service(record)
        catalog = await self._fetch_catalog(record, service)
        return deep_merge(record, service, catalog)

    async def _enrich(self, record: Dict[str, Any], include_controls: bool = False) -> Dict[str, Any]:
        service = self._fetch_service(record, include_controls=include_controls)
        if service is not None:
            record["service"] = service
            automation = await self._fetch_automation(record, service)
            if automation is not None:
                record["automation"] = automation

        catalog = await self._fetch_catalog(record, service)
        if catalog is not None:
            record["catalog"] = catalog
        return record

    def _fetch_service(self, record: Dict[str, Any], include_controls: bool = False) -> Optional[Dict[str, Any]]:
        try:
            return self.services.get_service(record["service_id"], include_controls=include_controls)
        except Exception as e:
            composite_source_failures_total.labels(source="service").inc()
            logger.warning(
                f"Service lookup failed for BOM {record.get('id')}: {_reason(e)}",
                extra={"bom_id": record.get("id"), "service_id": record.get("service_id")},
            )
            return None

    async def _fetch_automation(self, record: Dict[str, Any], service: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return await self.catalog.automation_by_id(service.get("cloud_automation_id"))
        except Exception as e:
            composite_source_failures_total.labels(source="automation").inc()
            logger.warning(
                f"Automation lookup failed for BOM {record.get('id')}: {_reason(e)}",
                extra={"bom_id": record.get("id"), "service_id": record.get("service_id")},
            )
            return None

    async def _fetch_catalog(self, record: Dict[str, Any], service: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if service is None:
            return None
        try:
            return await self.catalog.catalog_by_service(service)
        except Exception as e:
            composite_source_failures_total.labels(source="catalog").inc()
            logger.warning(
                f"Catalog lookup failed for BOM {record.get('id')}: {_reason(e)}",
                extra={"bom_id": record.get("id"), "service_id": record.get("service_id")},
            )
            return None
