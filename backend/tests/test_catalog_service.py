"""
Tests for CatalogService caching and global catalog lookups
"""
import httpx
import pytest
import yaml

from app.core.errors import CatalogUnavailableError, ReferenceNotFoundError
from app.services.catalog_service import CatalogService
from conftest import GLOBAL_CATALOG, MODULE_INDEX

MODULE_URL = "http://catalog.test/index.yaml"
GLOBAL_URL = "http://globalcatalog.test/api/v1"


class RecordingHandler:
    """MockTransport handler serving both catalogs and counting requests"""

    def __init__(self):
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "catalog.test":
            return httpx.Response(200, text=yaml.safe_dump(MODULE_INDEX))
        catalog_id = request.url.path.rsplit("/", 1)[-1]
        if catalog_id == "broken":
            return httpx.Response(200, text="not json")
        if catalog_id not in GLOBAL_CATALOG:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json=GLOBAL_CATALOG[catalog_id])


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def service(handler) -> CatalogService:
    return CatalogService(
        module_catalog_url=MODULE_URL,
        global_catalog_url=GLOBAL_URL + "/",
        ttl_seconds=3600,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_module_catalog_loaded_once(service, handler):
    """The module catalog is fetched lazily and then served from memory"""
    assert service.module_catalog_loaded is False

    first = await service.get_module_catalog()
    second = await service.get_module_catalog()

    assert first is second
    assert service.module_catalog_loaded is True
    assert len(handler.requests) == 1


@pytest.mark.asyncio
async def test_module_catalog_reloaded_after_ttl(handler):
    service = CatalogService(MODULE_URL, GLOBAL_URL, ttl_seconds=-1, transport=httpx.MockTransport(handler))

    await service.get_module_catalog()
    await service.get_module_catalog()

    assert len(handler.requests) == 2


@pytest.mark.asyncio
async def test_refresh_drops_cache(service, handler):
    await service.get_module_catalog()
    await service.catalog_by_service({"service_id": "vpc", "ibm_catalog_id": "vpc-catalog-id"})

    service.refresh()
    await service.get_module_catalog()
    await service.catalog_by_service({"service_id": "vpc", "ibm_catalog_id": "vpc-catalog-id"})

    assert len(handler.requests) == 4


@pytest.mark.asyncio
async def test_catalog_by_service_is_cached(service, handler):
    service_record = {"service_id": "vpc", "ibm_catalog_id": "vpc-catalog-id"}

    entry = await service.catalog_by_service(service_record)
    again = await service.catalog_by_service(service_record)

    assert entry["name"] == "is.vpc"
    assert again == entry
    assert len(handler.requests) == 1
    assert handler.requests[0].url.path == "/api/v1/vpc-catalog-id"
    assert handler.requests[0].url.params["include"] == "*"


@pytest.mark.asyncio
async def test_catalog_by_service_errors(service):
    with pytest.raises(ReferenceNotFoundError):
        await service.catalog_by_service({"service_id": "kms", "ibm_catalog_id": None})
    with pytest.raises(ReferenceNotFoundError):
        await service.catalog_by_service({"service_id": "x", "ibm_catalog_id": "missing"})
    with pytest.raises(CatalogUnavailableError):
        await service.catalog_by_service({"service_id": "x", "ibm_catalog_id": "broken"})


@pytest.mark.asyncio
async def test_automation_by_id(service):
    module = await service.automation_by_id("terraform-vpc")
    assert module["name"] == "terraform-vpc"

    with pytest.raises(ReferenceNotFoundError):
        await service.automation_by_id("terraform-unknown")
    with pytest.raises(ReferenceNotFoundError):
        await service.automation_by_id(None)
