"""
Catalog Service: long-lived owner of remote catalog data.

Holds the module catalog handle and global catalog entries in memory with a
time-to-live, so every request (and every component) shares the same cache.
"""
import time
from typing import Any, Dict, Optional

import httpx

from app.core.config import get_settings
from app.core.errors import CatalogUnavailableError, ReferenceNotFoundError
from app.core.logging_config import LoggingConfig
from app.core.metrics import catalog_fetch_duration_seconds, catalog_fetches_total
from app.services.contracts import CatalogReader
from app.services.module_catalog import ModuleCatalog, ModuleCatalogClient

logger = LoggingConfig.get_logger(__name__)


class CatalogCacheEntry:
    """Cached catalog value with its load time"""

    def __init__(self, value: Any, loaded_at: float):
        self.value = value
        self.loaded_at = loaded_at

    def is_expired(self, ttl_seconds: float) -> bool:
        return time.monotonic() - self.loaded_at > ttl_seconds


class CatalogService(CatalogReader):
    """
    Shared access to the module catalog and the cloud global catalog.

    Features:
    - Lazily loads the module catalog on first use, reloads after the TTL
    - Manual refresh() drops everything cached
    - Caches global catalog entries per catalog id
    """

    def __init__(
        self,
        module_catalog_url: str,
        global_catalog_url: str,
        ttl_seconds: float = 3600,
        timeout: float = 30.0,
        client: Optional[ModuleCatalogClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.module_catalog_url = module_catalog_url
        self.global_catalog_url = global_catalog_url.rstrip("/")
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self._transport = transport
        self.client = client or ModuleCatalogClient(timeout=timeout, transport=transport)
        self._module_catalog: Optional[CatalogCacheEntry] = None
        self._entries: Dict[str, CatalogCacheEntry] = {}

    def refresh(self) -> None:
        """Forget cached catalog data; the next call fetches again"""
        self._module_catalog = None
        self._entries.clear()
        logger.info("Catalog cache cleared")

    @property
    def module_catalog_loaded(self) -> bool:
        entry = self._module_catalog
        return entry is not None and not entry.is_expired(self.ttl_seconds)

    async def get_module_catalog(self) -> ModuleCatalog:
        entry = self._module_catalog
        if entry is None or entry.is_expired(self.ttl_seconds):
            catalog = await self.client.load_catalog(self.module_catalog_url)
            entry = CatalogCacheEntry(catalog, time.monotonic())
            self._module_catalog = entry
        return entry.value

    async def validate_module_config(self, module_id: str, yaml_text: str) -> None:
        catalog = await self.get_module_catalog()
        self.client.validate_module_config(catalog, module_id, yaml_text)

    async def automation_by_id(self, automation_id: str) -> Optional[Dict[str, Any]]:
        if not automation_id:
            raise ReferenceNotFoundError("Service has no automation id.")
        catalog = await self.get_module_catalog()
        module = catalog.lookup_module(automation_id)
        if module is None:
            raise ReferenceNotFoundError(f"No automation module matching id {automation_id}.")
        return module

    async def catalog_by_service(self, service: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        catalog_id = service.get("ibm_catalog_id")
        if not catalog_id:
            raise ReferenceNotFoundError(
                f"Service {service.get('service_id')} has no catalog id."
            )

        cached = self._entries.get(catalog_id)
        if cached is not None and not cached.is_expired(self.ttl_seconds):
            return cached.value

        entry = await self._fetch_global_entry(catalog_id)
        self._entries[catalog_id] = CatalogCacheEntry(entry, time.monotonic())
        return entry

    async def _fetch_global_entry(self, catalog_id: str) -> Dict[str, Any]:
        url = f"{self.global_catalog_url}/{catalog_id}"
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params={"include": "*", "languages": "en"})
                if response.status_code == 404:
                    catalog_fetches_total.labels(catalog="global", status="error").inc()
                    raise ReferenceNotFoundError(f"Catalog entry {catalog_id} not found.")
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            catalog_fetches_total.labels(catalog="global", status="error").inc()
            raise CatalogUnavailableError(
                f"Unable to fetch catalog entry {catalog_id}.",
                details={"url": url, "reason": str(e)},
            ) from e
        finally:
            catalog_fetch_duration_seconds.labels(catalog="global").observe(time.time() - start_time)

        catalog_fetches_total.labels(catalog="global", status="success").inc()
        return data


_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create the process-wide catalog service"""
    global _catalog_service
    if _catalog_service is None:
        settings = get_settings()
        _catalog_service = CatalogService(
            module_catalog_url=settings.module_catalog_url,
            global_catalog_url=settings.global_catalog_url,
            ttl_seconds=settings.catalog_cache_ttl_seconds,
            timeout=settings.catalog_request_timeout_seconds,
        )
    return _catalog_service
