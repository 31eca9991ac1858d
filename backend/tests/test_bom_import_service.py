"""
Tests for BomImportService
"""
import pytest
import yaml

from app.core.errors import (BomValidationError, ConflictError,
                             ExternalValidationError, ReferenceNotFoundError)
from app.models.architecture import Architecture
from app.models.bom import Bom
from app.services.bom_import_service import BomImportService
from app.services.bom_parser import UploadedFile
from app.services.module_catalog import ModuleCatalog

FIN_SERVICES_BOM = """
kind: BillOfMaterial
metadata:
  name: fin-services
spec:
  modules:
    - name: terraform-vpc
      alias: vpc1
"""

TWO_MODULE_BOM = """
kind: BillOfMaterial
metadata:
  name: edge
spec:
  variables:
    - name: region
      value: us-south
  modules:
    - name: terraform-vpc
      alias: edge-vpc
      variables:
        region: us-east
    - name: terraform-cos
"""


def _upload(text: str, mimetype: str = "application/x-yaml") -> UploadedFile:
    buffer = text.encode("utf-8")
    return UploadedFile(mimetype=mimetype, buffer=buffer, size=len(buffer), filename="bom.yaml")


@pytest.fixture
def importer(seeded, catalog_service) -> BomImportService:
    return BomImportService(seeded, catalog_service)


class TestImportBoms:
    """Tests for importing BOM documents"""

    @pytest.mark.asyncio
    async def test_import_creates_architecture_and_entry(self, importer, db):
        """A new architecture gets placeholder fields and one entry per module"""
        count = await importer.import_boms([_upload(FIN_SERVICES_BOM)])

        assert count == 1
        arch = db.get(Architecture, "fin-services")
        assert arch.name == "fin-services"
        assert arch.short_desc == "fin-services Architecture."
        assert arch.long_desc == "fin-services FS Architecture."
        assert arch.diagram_folder == "placeholder"
        assert arch.diagram_link_png == "placeholder.png"
        assert arch.confidential is True
        assert yaml.safe_load(arch.automation_variables) == {}

        boms = db.query(Bom).filter(Bom.arch_id == "fin-services").all()
        assert len(boms) == 1
        assert boms[0].service_id == "vpc"
        assert boms[0].desc == "vpc1"
        assert yaml.safe_load(boms[0].automation_variables) == {"alias": "vpc1"}

    @pytest.mark.asyncio
    async def test_import_stores_variables(self, importer, db):
        await importer.import_boms([_upload(TWO_MODULE_BOM)])

        arch = db.get(Architecture, "edge")
        assert yaml.safe_load(arch.automation_variables) == {
            "variables": [{"name": "region", "value": "us-south"}]
        }
        boms = db.query(Bom).filter(Bom.arch_id == "edge").order_by(Bom.id).all()
        assert [b.service_id for b in boms] == ["vpc", "cos"]
        assert [b.desc for b in boms] == ["edge-vpc", "terraform-cos"]
        assert list(yaml.safe_load(boms[0].automation_variables)) == ["alias", "variables"]
        assert boms[1].automation_variables is None

    @pytest.mark.asyncio
    async def test_existing_architecture_without_overwrite(self, importer, db):
        """Conflict is raised before anything is written"""
        await importer.import_boms([_upload(FIN_SERVICES_BOM)])
        before = [(b.id, b.desc) for b in db.query(Bom).all()]

        with pytest.raises(ConflictError) as exc:
            await importer.import_boms([_upload(FIN_SERVICES_BOM)])

        assert exc.value.message == (
            "Architecture fin-services already exists. Set 'overwrite' parameter to overwrite."
        )
        assert exc.value.architecture == "fin-services"
        assert [(b.id, b.desc) for b in db.query(Bom).all()] == before

    @pytest.mark.asyncio
    async def test_overwrite_is_idempotent(self, importer, db):
        """Importing twice with overwrite leaves one entry per module"""
        await importer.import_boms([_upload(TWO_MODULE_BOM)], overwrite=True)
        await importer.import_boms([_upload(TWO_MODULE_BOM)], overwrite=True)

        boms = db.query(Bom).filter(Bom.arch_id == "edge").all()
        assert sorted(b.service_id for b in boms) == ["cos", "vpc"]
        assert db.query(Architecture).count() == 1

    @pytest.mark.asyncio
    async def test_module_without_service(self, importer, catalog_service, db):
        catalog_service.catalog = ModuleCatalog({"modules": [{"name": "terraform-orphan"}]})
        text = FIN_SERVICES_BOM.replace("terraform-vpc", "terraform-orphan")

        with pytest.raises(ReferenceNotFoundError) as exc:
            await importer.import_boms([_upload(text)])

        assert exc.value.message == "No service matching automation ID terraform-orphan"
        assert exc.value.architecture == "fin-services"

    @pytest.mark.asyncio
    async def test_rejected_module_config(self, importer):
        text = FIN_SERVICES_BOM + "      variables:\n        zone: 1\n"

        with pytest.raises(ExternalValidationError) as exc:
            await importer.import_boms([_upload(text)])

        payload = exc.value.to_dict()
        assert payload["message"] == "YAML module config error for module terraform-vpc"
        assert payload["architecture"] == "fin-services"
        assert "zone" in payload["details"]["message"]

    @pytest.mark.asyncio
    async def test_earlier_modules_stay_after_failure(self, importer, db):
        """Writes are committed per module, a later failure does not undo them"""
        text = TWO_MODULE_BOM.replace("- name: terraform-cos", "- name: terraform-missing")

        with pytest.raises(ExternalValidationError):
            await importer.import_boms([_upload(text)])

        assert [b.service_id for b in db.query(Bom).filter(Bom.arch_id == "edge")] == ["vpc"]

    @pytest.mark.asyncio
    async def test_oversized_file_rejected_before_parsing(self, importer, db):
        big = _upload(FIN_SERVICES_BOM + "#" * (150 * 1024))

        with pytest.raises(BomValidationError):
            await importer.import_boms([_upload(FIN_SERVICES_BOM.replace("fin-services", "other")), big])

        assert db.query(Architecture).count() == 0

    @pytest.mark.asyncio
    async def test_non_yaml_file_rejected(self, importer):
        with pytest.raises(BomValidationError) as exc:
            await importer.import_boms([_upload(FIN_SERVICES_BOM, mimetype="text/plain")])
        assert exc.value.message == "You must only upload YAML files."


class TestValidateEntryVariables:

    @pytest.mark.asyncio
    async def test_valid_variables(self, importer):
        await importer.validate_entry_variables("vpc", "variables:\n  region: us-south\n")

    @pytest.mark.asyncio
    async def test_service_without_automation_id(self, importer):
        with pytest.raises(ExternalValidationError) as exc:
            await importer.validate_entry_variables("kms", "variables: {}\n")
        assert exc.value.message == "Service Key Protect is missing automation ID."

    @pytest.mark.asyncio
    async def test_unknown_service(self, importer):
        with pytest.raises(ReferenceNotFoundError):
            await importer.validate_entry_variables("nope", "variables: {}\n")
