"""
Read-only collaborator interfaces used by the composite aggregator and reports.

Implementations: ServiceCatalogService (services), CatalogService (remote
catalogs) and ControlMappingService (control mappings).
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional


class ServiceReader(ABC):
    """Reads service records as plain dicts"""

    @abstractmethod
    def get_service(self, service_id: str, include_controls: bool = False) -> Dict[str, Any]:
        """Return the service, raising ReferenceNotFoundError when missing"""
        ...


class CatalogReader(ABC):
    """Reads remote catalog data for services and automation modules"""

    @abstractmethod
    async def catalog_by_service(self, service: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Global catalog entry describing a service"""
        ...

    @abstractmethod
    async def automation_by_id(self, automation_id: str) -> Optional[Dict[str, Any]]:
        """Module catalog record for an automation id"""
        ...


class ControlMappingReader(ABC):

    @abstractmethod
    def find_mappings(
        self,
        service_ids: Iterable[str],
        profile_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Mappings for the services, with control, profile and goals included"""
        ...
