"""
Pytest configuration and fixtures
"""
import os
import sys
import tempfile
from pathlib import Path

# Settings are cached on first use, so the test environment is set before any app import
os.environ["SQLALCHEMY_DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ.setdefault("REPORT_OUTPUT_DIR", tempfile.mkdtemp(prefix="reports-"))

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest
from sqlalchemy.orm import Session, sessionmaker

import app.models  # noqa: F401
from app.core.database import Base, build_engine
from app.core.errors import CatalogUnavailableError, ReferenceNotFoundError
from app.models.architecture import Architecture
from app.models.control import Control, ControlMapping, Goal, Profile
from app.models.service import Service
from app.services.catalog_service import CatalogService
from app.services.module_catalog import ModuleCatalog

MODULE_INDEX = {
    "categories": [
        {
            "category": "network",
            "modules": [
                {
                    "id": "github.com/cloud-native-toolkit/terraform-ibm-vpc",
                    "name": "terraform-vpc",
                    "versions": [
                        {"version": "v1.2.0", "variables": [{"name": "region"}, {"name": "name_prefix"}]},
                    ],
                },
            ],
        },
        {
            "category": "storage",
            "modules": [
                {"id": "github.com/cloud-native-toolkit/terraform-ibm-cos", "name": "terraform-cos", "versions": []},
            ],
        },
    ]
}

GLOBAL_CATALOG = {
    "vpc-catalog-id": {
        "id": "vpc-catalog-id",
        "name": "is.vpc",
        "overview_ui": {"en": {"description": "Virtual networks", "long_description": "Isolated virtual networks"}},
        "provider": {"name": "IBM"},
    },
    "cos-catalog-id": {
        "id": "cos-catalog-id",
        "name": "cloud-object-storage",
        "overview_ui": {"en": {"description": "Object storage"}},
        "provider": {"name": "IBM"},
    },
}


class FakeCatalogService(CatalogService):
    """Catalog service answering from in-memory data instead of the network"""

    def __init__(self, index=None, entries=None):
        super().__init__(
            module_catalog_url="http://catalog.test/index.yaml",
            global_catalog_url="http://globalcatalog.test/api/v1",
        )
        self.catalog = ModuleCatalog(index if index is not None else MODULE_INDEX)
        self.entries = dict(entries if entries is not None else GLOBAL_CATALOG)
        self.failing_catalog_ids = set()
        self.catalog_requests = []

    async def get_module_catalog(self) -> ModuleCatalog:
        return self.catalog

    async def _fetch_global_entry(self, catalog_id: str):
        self.catalog_requests.append(catalog_id)
        if catalog_id in self.failing_catalog_ids:
            raise CatalogUnavailableError(f"Unable to fetch catalog entry {catalog_id}.")
        if catalog_id not in self.entries:
            raise ReferenceNotFoundError(f"Catalog entry {catalog_id} not found.")
        return self.entries[catalog_id]


@pytest.fixture(scope="function")
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    """Create a database session for testing"""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def catalog_service() -> FakeCatalogService:
    return FakeCatalogService()


@pytest.fixture
def seeded(db: Session):
    """Services, controls and mappings the BOM pipeline reads"""
    db.add_all([
        Service(
            service_id="vpc",
            ibm_catalog_id="vpc-catalog-id",
            ibm_catalog_service="VPC Infrastructure",
            cloud_automation_id="terraform-vpc",
            desc="Virtual Private Cloud",
            grouping="Network",
            deployment_method="Terraform",
            provision="Automated",
        ),
        Service(
            service_id="cos",
            ibm_catalog_id="cos-catalog-id",
            ibm_catalog_service="Cloud Object Storage",
            cloud_automation_id="terraform-cos",
            grouping="Storage",
        ),
        Service(service_id="kms", ibm_catalog_service="Key Protect", grouping="Security"),
        Profile(id="fs-cloud", name="Financial Services Cloud"),
        Profile(id="other", name="Other profile"),
        Control(
            id="AC-2",
            name="Account Management",
            family="Access Control",
            description="#### Requirement\n**Note:** accounts are managed.\n\n\nReview them.",
            parameters="*quarterly*",
            implementation="**IBM** manages accounts.",
        ),
        Control(id="SC-7", name="Boundary Protection", parent_control="SC"),
        Goal(goal_id="g-1", description="Accounts reviewed"),
    ])
    db.commit()
    db.add_all([
        ControlMapping(control_id="AC-2", service_id="vpc", scc_profile="fs-cloud"),
        ControlMapping(control_id="AC-2", service_id="cos", scc_profile="fs-cloud"),
        ControlMapping(control_id="SC-7", service_id="vpc", scc_profile="other"),
    ])
    db.commit()
    return db


@pytest.fixture
def architecture(db: Session) -> Architecture:
    arch = Architecture(arch_id="fin-services", name="Financial Services")
    db.add(arch)
    db.commit()
    return arch


@pytest.fixture(scope="function")
def client(db: Session, catalog_service: FakeCatalogService):
    """Create test client with database and catalog dependency overrides"""
    import importlib.util

    # Import main module directly
    main_path = backend_dir / "main.py"
    spec = importlib.util.spec_from_file_location("main", main_path)
    main_module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(main_module)
    app = main_module.app

    from fastapi.testclient import TestClient

    from app.core.database import get_db
    from app.services.catalog_service import get_catalog_service

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog_service] = lambda: catalog_service
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
