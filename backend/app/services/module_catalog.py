"""
Client for the automation module catalog (terraform module index)
"""
import time
from typing import Any, Dict, List, Optional

import httpx
import yaml

from app.core.errors import CatalogUnavailableError, ExternalValidationError
from app.core.logging_config import LoggingConfig
from app.core.metrics import catalog_fetch_duration_seconds, catalog_fetches_total

logger = LoggingConfig.get_logger(__name__)


class ModuleCatalog:
    """Parsed module index, searchable by module name or id"""

    def __init__(self, data: Dict[str, Any], source_url: Optional[str] = None):
        self.source_url = source_url
        self.modules: List[Dict[str, Any]] = []
        self._index: Dict[str, Dict[str, Any]] = {}

        categories = data.get("categories") or []
        for category in categories:
            for module in (category or {}).get("modules") or []:
                if not isinstance(module, dict):
                    continue
                module = {**module, "category": category.get("category")}
                self.modules.append(module)
                for key in (module.get("name"), module.get("id")):
                    if key:
                        self._index.setdefault(key, module)

        # Flat indexes list modules at the top level
        for module in data.get("modules") or []:
            if isinstance(module, dict):
                self.modules.append(module)
                for key in (module.get("name"), module.get("id")):
                    if key:
                        self._index.setdefault(key, module)

    def __len__(self) -> int:
        return len(self.modules)

    def lookup_module(self, module_id: str) -> Optional[Dict[str, Any]]:
        return self._index.get(module_id)

    @staticmethod
    def latest_version(module: Dict[str, Any]) -> Dict[str, Any]:
        versions = module.get("versions") or []
        return versions[0] if versions and isinstance(versions[0], dict) else {}

    def declared_variables(self, module: Dict[str, Any]) -> List[str]:
        variables = self.latest_version(module).get("variables") or []
        return [v["name"] for v in variables if isinstance(v, dict) and v.get("name")]


def _configured_variable_names(variables: Any) -> List[str]:
    """Variables are either a mapping or a list of {name, value} items"""
    if isinstance(variables, dict):
        return [str(name) for name in variables.keys()]
    names = []
    for item in variables or []:
        if not isinstance(item, dict) or not item.get("name"):
            raise ValueError("each variable must be a mapping with a 'name'")
        names.append(str(item["name"]))
    return names


class ModuleCatalogClient:
    """Loads module catalogs and validates BOM module configurations against them"""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport

    async def load_catalog(self, url: str) -> ModuleCatalog:
        """Fetch and parse the module index at `url`"""
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url)
                response.raise_for_status()
            data = yaml.safe_load(response.text) or {}
            if not isinstance(data, dict):
                raise ValueError("module catalog index is not a mapping")
            catalog = ModuleCatalog(data, source_url=url)
        except (httpx.HTTPError, yaml.YAMLError, ValueError, AttributeError, TypeError) as e:
            catalog_fetches_total.labels(catalog="module", status="error").inc()
            logger.error(f"Failed to load module catalog from {url}: {e}")
            raise CatalogUnavailableError(
                "Unable to load the module catalog.",
                details={"url": url, "reason": str(e)},
            ) from e
        finally:
            catalog_fetch_duration_seconds.labels(catalog="module").observe(time.time() - start_time)

        catalog_fetches_total.labels(catalog="module", status="success").inc()
        logger.info(f"Loaded module catalog with {len(catalog)} modules", extra={"url": url})
        return catalog

    def validate_module_config(self, catalog: ModuleCatalog, module_id: str, yaml_text: str) -> None:
        """Raise ExternalValidationError when the module config does not fit the catalog"""
        try:
            config = yaml.safe_load(yaml_text) if yaml_text else {}
        except yaml.YAMLError as e:
            raise ExternalValidationError(
                f"Module {module_id} config is not valid YAML.", details=str(e)
            ) from e
        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ExternalValidationError(f"Module {module_id} config must be a mapping.")

        module = catalog.lookup_module(module_id)
        if module is None:
            raise ExternalValidationError(f"Module {module_id} not found in the module catalog.")

        try:
            configured = _configured_variable_names(config.get("variables"))
        except ValueError as e:
            raise ExternalValidationError(f"Module {module_id} variables are invalid: {e}") from e

        declared = catalog.declared_variables(module)
        if declared:
            unknown = [name for name in configured if name not in declared]
            if unknown:
                raise ExternalValidationError(
                    f"Module {module_id} does not declare variable(s): {', '.join(unknown)}",
                    details={"unknown_variables": unknown, "declared_variables": declared},
                )

        dependencies = config.get("dependencies")
        if dependencies is not None:
            if not isinstance(dependencies, list):
                raise ExternalValidationError(f"Module {module_id} dependencies must be a list.")
            for dependency in dependencies:
                if not isinstance(dependency, dict) or not any(
                    dependency.get(key) for key in ("name", "id", "ref")
                ):
                    raise ExternalValidationError(
                        f"Module {module_id} dependencies must each carry a name, id or ref.",
                        details={"dependency": dependency},
                    )
