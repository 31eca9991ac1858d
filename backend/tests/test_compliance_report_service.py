"""
Tests for ComplianceReportService
"""
from pathlib import Path

import pytest
from PIL import Image
from reportlab.platypus import Paragraph

from app.core.errors import PathSecurityError, ReferenceNotFoundError
from app.models.architecture import Architecture
from app.models.bom import Bom
from app.services.architecture_service import ArchitectureService
from app.services.bom_service import BomService
from app.services.compliance_report_service import (ComplianceReportService,
                                                    build_markdown_report,
                                                    resolve_within, unique_by)
from app.services.composite_service import CompositeService
from app.services.control_mapping_service import ControlMappingService
from app.services.pdf_renderer import PdfReportRenderer
from app.services.service_catalog_service import ServiceCatalogService


@pytest.fixture
def report_boms(seeded, architecture):
    seeded.add_all([
        Bom(arch_id="fin-services", service_id="vpc", desc="vpc1"),
        Bom(arch_id="fin-services", service_id="vpc", desc="vpc2"),
        Bom(arch_id="fin-services", service_id="cos", desc="cos1"),
    ])
    seeded.commit()


@pytest.fixture
def reports(seeded, catalog_service, tmp_path) -> ComplianceReportService:
    composite = CompositeService(BomService(seeded), ServiceCatalogService(seeded), catalog_service)
    return ComplianceReportService(
        ArchitectureService(seeded),
        composite,
        ControlMappingService(seeded),
        font_path=str(tmp_path / "missing-font.ttf"),
        images_dir=str(tmp_path / "images"),
        output_dir=str(tmp_path / "reports"),
    )


class TestCollect:

    @pytest.mark.asyncio
    async def test_services_and_controls_deduplicated(self, reports, report_boms):
        data = await reports.collect("fin-services", profile_id="fs-cloud")

        assert [b["desc"] for b in data.boms] == ["vpc1", "vpc2", "cos1"]
        assert [s["service_id"] for s in data.services] == ["vpc", "cos"]
        assert [c["id"] for c in data.controls] == ["AC-2"]
        assert data.catalog_for("vpc")["name"] == "is.vpc"

    @pytest.mark.asyncio
    async def test_without_profile_all_mappings(self, reports, report_boms):
        data = await reports.collect("fin-services")
        assert [c["id"] for c in data.controls] == ["AC-2", "SC-7"]

    @pytest.mark.asyncio
    async def test_unknown_architecture(self, reports, seeded):
        with pytest.raises(ReferenceNotFoundError):
            await reports.collect("missing")


class TestRender:

    @pytest.mark.asyncio
    async def test_pdf_report(self, reports, report_boms):
        pdf = await reports.render_compliance_report("fin-services", "fs-cloud")
        assert pdf.startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_pdf_report_with_diagram(self, reports, report_boms, seeded, tmp_path):
        folder = tmp_path / "images" / "fin"
        folder.mkdir(parents=True)
        Image.new("RGBA", (400, 200), (0, 128, 255, 255)).save(folder / "diagram.png")
        arch = seeded.get(Architecture, "fin-services")
        arch.diagram_folder = "fin"
        arch.diagram_link_png = "diagram.png"
        seeded.commit()

        pdf = await reports.render_compliance_report("fin-services", "fs-cloud")

        assert pdf.startswith(b"%PDF")
        assert b"/Subtype /Image" in pdf

    @pytest.mark.asyncio
    async def test_tall_diagram_fits_first_page(self, reports, report_boms, seeded, tmp_path):
        folder = tmp_path / "images" / "fin"
        folder.mkdir(parents=True)
        Image.new("RGB", (400, 2000), (0, 128, 255)).save(folder / "portrait.png")
        arch = seeded.get(Architecture, "fin-services")
        arch.diagram_folder = "fin"
        arch.diagram_link_png = "portrait.png"
        seeded.commit()

        pdf = await reports.render_compliance_report("fin-services", "fs-cloud")

        assert pdf.startswith(b"%PDF")
        assert b"/Subtype /Image" in pdf

    @pytest.mark.asyncio
    async def test_diagram_outside_images_dir_skipped(self, reports, report_boms, seeded):
        arch = seeded.get(Architecture, "fin-services")
        arch.diagram_folder = "../.."
        arch.diagram_link_png = "etc.png"
        seeded.commit()

        pdf = await reports.render_compliance_report("fin-services")
        assert pdf.startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_markdown_report_cleans_up(self, reports, report_boms, tmp_path):
        pdf = await reports.render_markdown_report("fin-services")

        assert pdf.startswith(b"%PDF")
        assert list((tmp_path / "reports").iterdir()) == []

    @pytest.mark.asyncio
    async def test_markdown_content(self, reports, report_boms):
        data = await reports.collect("fin-services")
        assert build_markdown_report(data) == (
            "# Financial Services compliance report\n"
            "## Services\n"
            "### VPC Infrastructure\n"
            "### Cloud Object Storage\n"
        )


class TestHelpers:

    def test_resolve_within(self, tmp_path):
        assert resolve_within(str(tmp_path), "a", "b.pdf") == (tmp_path / "a" / "b.pdf").resolve()

    @pytest.mark.parametrize("parts", [("..", "escape.pdf"), ("/etc/passwd",)])
    def test_resolve_outside(self, tmp_path, parts):
        with pytest.raises(PathSecurityError):
            resolve_within(str(tmp_path), *parts)

    def test_unique_by(self):
        items = [{"id": "a"}, {"id": "b"}, {"id": "a"}, {"id": None}]
        assert unique_by(items, "id") == [{"id": "a"}, {"id": "b"}]


class TestPdfBlocks:

    @staticmethod
    def _texts(flowables):
        return [f.text for f in flowables if isinstance(f, Paragraph)]

    def test_service_block_skips_empty_attributes(self):
        service = {"service_id": "kms", "ibm_catalog_service": "Key Protect", "grouping": "Security"}

        block = ComplianceReportService._service_block(PdfReportRenderer(), service, None)

        assert self._texts(block) == ["Key Protect", "- Group: Security"]

    def test_service_block_with_catalog(self):
        service = {"service_id": "vpc", "ibm_catalog_service": "VPC", "provision": "Automated"}
        catalog = {"overview_ui": {"en": {"description": "Virtual networks"}}, "provider": {"name": "IBM"}}

        block = ComplianceReportService._service_block(PdfReportRenderer(), service, catalog)

        assert self._texts(block) == [
            "VPC", "Description", "Virtual networks", "- Provider: IBM", "- Provision: Automated",
        ]

    def test_image_fits_box(self, tmp_path):
        path = tmp_path / "portrait.png"
        Image.new("RGB", (400, 2000)).save(path)
        renderer = PdfReportRenderer()

        image = renderer.image(path, renderer.frame_width, 600)

        assert image.drawHeight == pytest.approx(600)
        assert image.drawWidth == pytest.approx(120)
