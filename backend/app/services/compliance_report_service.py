"""
Compliance Report Service: renders an architecture's services and the
compliance controls mapped to them as a PDF document.
"""
import asyncio
import re
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.core.config import get_settings
from app.core.errors import PathSecurityError
from app.core.logging_config import LoggingConfig
from app.core.metrics import report_render_duration_seconds, reports_rendered_total
from app.core.utils import model_to_dict, safe_get_nested
from app.services.architecture_service import ArchitectureService
from app.services.composite_service import CompositeService
from app.services.contracts import ControlMappingReader
from app.services.pdf_renderer import PdfReportRenderer, page_break
from app.services.report_text import (normalize_control_text,
                                      normalize_parameters_text)
from app.services.service_catalog_service import service_display_name

logger = LoggingConfig.get_logger(__name__)

_SAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


def resolve_within(base_dir: str, *parts: str) -> Path:
    """Resolve `parts` under `base_dir`, refusing anything that escapes it"""
    base = Path(base_dir).resolve()
    target = base.joinpath(*parts).resolve()
    if not target.is_relative_to(base):
        raise PathSecurityError(f"Path {target} is outside of {base}")
    return target


def unique_by(items: List[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    """First occurrence of every `key` value, in order"""
    seen = set()
    result = []
    for item in items:
        value = item.get(key)
        if value is None or value in seen:
            continue
        seen.add(value)
        result.append(item)
    return result


class ComplianceReportData:
    """Everything a compliance report shows, gathered before rendering"""

    def __init__(
        self,
        architecture: Dict[str, Any],
        boms: List[Dict[str, Any]],
        services: List[Dict[str, Any]],
        controls: List[Dict[str, Any]],
        profile_id: Optional[str] = None,
    ):
        self.architecture = architecture
        self.boms = boms
        self.services = services
        self.controls = controls
        self.profile_id = profile_id

    def catalog_for(self, service_id: str) -> Optional[Dict[str, Any]]:
        for bom in self.boms:
            if bom.get("service_id") == service_id and bom.get("catalog"):
                return bom["catalog"]
        return None


class ComplianceReportService:
    """
    Builds compliance reports.

    The PDF variant lists the BOM, every distinct service and every distinct
    control mapped to those services for a profile. The markdown variant only
    lists service names.
    """

    def __init__(
        self,
        architectures: ArchitectureService,
        composite: CompositeService,
        mappings: ControlMappingReader,
        font_path: Optional[str] = None,
        images_dir: Optional[str] = None,
        output_dir: Optional[str] = None,
    ):
        settings = get_settings()
        self.architectures = architectures
        self.composite = composite
        self.mappings = mappings
        self.font_path = font_path or settings.report_font_path
        self.images_dir = images_dir or settings.diagram_images_dir
        self.output_dir = output_dir or settings.report_output_dir

    async def collect(self, arch_id: str, profile_id: Optional[str] = None) -> ComplianceReportData:
        architecture = model_to_dict(self.architectures.get_architecture(arch_id))
        boms = await self.composite.composite_architecture(arch_id)

        services = unique_by([bom["service"] for bom in boms if bom.get("service")], "service_id")
        service_ids = list(dict.fromkeys(bom["service_id"] for bom in boms if bom.get("service_id")))

        mappings = self.mappings.find_mappings(service_ids, profile_id=profile_id)
        controls = unique_by([m["control"] for m in mappings if m.get("control")], "id")

        return ComplianceReportData(architecture, boms, services, controls, profile_id)

    async def render_compliance_report(self, arch_id: str, profile_id: Optional[str] = None) -> bytes:
        """Full compliance report as PDF bytes"""
        data = await self.collect(arch_id, profile_id)
        start = time.time()
        pdf = await asyncio.to_thread(self._render_pdf, data)
        report_render_duration_seconds.labels(format="pdf").observe(time.time() - start)
        reports_rendered_total.labels(format="pdf").inc()
        logger.info(
            f"Rendered compliance report for {arch_id}",
            extra={
                "architecture": arch_id,
                "profile": profile_id,
                "services": len(data.services),
                "controls": len(data.controls),
                "bytes": len(pdf),
            },
        )
        return pdf

    async def render_markdown_report(self, arch_id: str) -> bytes:
        """Service list report: markdown written out as a transient PDF file"""
        data = await self.collect(arch_id)
        markdown = build_markdown_report(data)
        filename = f"{_SAFE_FILENAME.sub('_', arch_id)}-{uuid.uuid4().hex}.pdf"
        target = resolve_within(self.output_dir, filename)

        start = time.time()
        try:
            pdf = await asyncio.to_thread(self._render_markdown, markdown, target)
        finally:
            target.unlink(missing_ok=True)
        report_render_duration_seconds.labels(format="markdown").observe(time.time() - start)
        reports_rendered_total.labels(format="markdown").inc()
        return pdf

    def _diagram_path(self, architecture: Dict[str, Any]) -> Optional[Path]:
        folder = architecture.get("diagram_folder")
        png = architecture.get("diagram_link_png")
        if not folder or not png:
            return None
        try:
            path = resolve_within(self.images_dir, folder, png)
        except PathSecurityError as e:
            logger.warning(f"Diagram for {architecture.get('arch_id')} skipped: {e.message}")
            return None
        return path if path.is_file() else None

    def _render_pdf(self, data: ComplianceReportData) -> bytes:
        renderer = PdfReportRenderer(self.font_path)
        architecture = data.architecture
        title = renderer.paragraph(architecture.get("name") or architecture.get("arch_id"), "title")
        story = [title]

        diagram = self._diagram_path(architecture)
        if diagram is not None:
            # The diagram shares the first page with the title
            _, title_height = title.wrap(renderer.frame_width, renderer.frame_height)
            title_style = renderer.styles["title"]
            max_height = renderer.frame_height - title_height - title_style.spaceBefore - title_style.spaceAfter
            image = renderer.image(diagram, renderer.frame_width, max_height)
            if image is not None:
                story.append(image)
        story.append(page_break())

        story.append(renderer.paragraph("Bill of Materials", "h1"))
        for bom in data.boms:
            name = service_display_name(bom.get("service")) or bom.get("service_id")
            story.append(renderer.paragraph(f"- {bom.get('desc') or ''}: {name}"))
        story.append(renderer.section_gap())

        story.append(renderer.paragraph("Services", "h1"))
        for service in data.services:
            story.extend(self._service_block(renderer, service, data.catalog_for(service["service_id"])))

        if data.controls:
            story.append(page_break())
            story.append(renderer.paragraph("Controls", "h1"))
            for control in data.controls:
                story.extend(self._control_block(renderer, control))

        return renderer.build(story)

    @staticmethod
    def _service_block(renderer: PdfReportRenderer, service: Dict[str, Any], catalog: Optional[Dict[str, Any]]):
        description = (
            safe_get_nested(catalog, "overview_ui", "en", "long_description")
            or safe_get_nested(catalog, "overview_ui", "en", "description")
            or service.get("desc")
        )
        block = [renderer.paragraph(service_display_name(service), "h2")]
        if description:
            block.append(renderer.paragraph("Description", "h3"))
            block.append(renderer.paragraph(description))
        attributes = (
            ("Provider", safe_get_nested(catalog, "provider", "name")),
            ("Group", service.get("grouping")),
            ("Deployment Method", service.get("deployment_method")),
            ("Provision", service.get("provision")),
        )
        block.extend(renderer.paragraph(f"- {label}: {value}") for label, value in attributes if value)
        block.append(renderer.section_gap())
        return block

    @staticmethod
    def _control_block(renderer: PdfReportRenderer, control: Dict[str, Any]):
        title = control["id"] if not control.get("name") else f"{control['id']} {control['name']}"
        block = [renderer.paragraph(title, "h2")]
        description = normalize_control_text(control.get("description"))
        if description:
            block.append(renderer.paragraph("Description", "h3"))
            block.append(renderer.paragraph(description))
        if control.get("parent_control"):
            block.append(renderer.paragraph(f"- Parent control: {control['parent_control']}"))
        parameters = normalize_parameters_text(control.get("parameters"))
        if parameters:
            block.append(renderer.paragraph("Parameters", "h3"))
            block.append(renderer.paragraph(parameters))
        implementation = normalize_control_text(control.get("implementation"))
        if implementation:
            block.append(renderer.paragraph("Solution and Implementation", "h3"))
            block.append(renderer.paragraph(implementation))
        block.append(renderer.section_gap())
        return block

    def _render_markdown(self, markdown: str, target: Path) -> bytes:
        renderer = PdfReportRenderer(self.font_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        renderer.build(markdown_flowables(renderer, markdown), target=target)
        return target.read_bytes()


def build_markdown_report(data: ComplianceReportData) -> str:
    name = data.architecture.get("name") or data.architecture.get("arch_id")
    lines = [f"# {name} compliance report", "## Services"]
    lines.extend(f"### {service_display_name(service)}" for service in data.services)
    return "\n".join(lines) + "\n"


def markdown_flowables(renderer: PdfReportRenderer, markdown: str) -> list:
    """Headings, bullets and plain paragraphs; other markup is kept as text"""
    styles = {"#": "h1", "##": "h2", "###": "h3"}
    story = []
    for line in markdown.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        marker, _, rest = stripped.partition(" ")
        if marker in styles and rest:
            story.append(renderer.paragraph(rest, styles[marker]))
        elif marker in ("-", "*") and rest:
            story.append(renderer.paragraph(f"• {rest}"))
        else:
            story.append(renderer.paragraph(stripped))
    return story
