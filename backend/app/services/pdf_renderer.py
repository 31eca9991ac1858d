"""
PDF rendering for compliance reports (reportlab)
"""
import io
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from xml.sax.saxutils import escape

from PIL import Image as PILImage
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError
from reportlab.pdfgen import canvas
from reportlab.platypus import (Flowable, Image, PageBreak, Paragraph,
                                SimpleDocTemplate, Spacer)

from app.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

DEFAULT_FONT = "Helvetica"
PAGE_PADDING = 50  # points
# SimpleDocTemplate frames pad their content on every side
FRAME_PADDING = 6
BASE_FONT_SIZE = 11


class NumberedCanvas(canvas.Canvas):
    """Canvas drawing a centred "page / total" footer once the page count is known"""

    font_name = DEFAULT_FONT

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states: List[Dict[str, Any]] = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_page_number(total)
            super().showPage()
        super().save()

    def _draw_page_number(self, total: int):
        self.setFont(self.font_name, 9)
        width, _ = self._pagesize
        self.drawCentredString(width / 2.0, PAGE_PADDING / 2.0, f"{self._pageNumber} / {total}")


def paragraph_text(text: Optional[str]) -> str:
    """Escape text for a reportlab Paragraph, keeping line breaks"""
    return escape(text or "").replace("\n", "<br/>")


class PdfReportRenderer:
    """
    Builds report PDFs from flowables.

    The configured TrueType font is used when the file exists, otherwise
    the built-in Helvetica.
    """

    _registered_fonts: Dict[str, str] = {}

    def __init__(self, font_path: Optional[str] = None):
        self.font_name = self._register_font(font_path)
        self.styles = self._build_styles(self.font_name)

    @classmethod
    def _register_font(cls, font_path: Optional[str]) -> str:
        if not font_path:
            return DEFAULT_FONT
        if font_path in cls._registered_fonts:
            return cls._registered_fonts[font_path]

        path = Path(font_path)
        if not path.is_file():
            logger.warning(f"Report font {font_path} not found, using {DEFAULT_FONT}")
            return DEFAULT_FONT
        font_name = path.stem
        try:
            pdfmetrics.registerFont(TTFont(font_name, str(path)))
        except TTFError as e:
            logger.warning(f"Report font {font_path} could not be loaded ({e}), using {DEFAULT_FONT}")
            return DEFAULT_FONT
        cls._registered_fonts[font_path] = font_name
        return font_name

    @staticmethod
    def _build_styles(font_name: str) -> Dict[str, ParagraphStyle]:
        sample = getSampleStyleSheet()
        body = ParagraphStyle(
            "ReportBody", parent=sample["Normal"], fontName=font_name,
            fontSize=BASE_FONT_SIZE, leading=BASE_FONT_SIZE * 1.35,
        )

        def sized(name: str, size: int, **kwargs) -> ParagraphStyle:
            return ParagraphStyle(
                name, parent=body, fontSize=size, leading=size * 1.25,
                spaceBefore=size * 0.4, spaceAfter=size * 0.3, **kwargs
            )

        return {
            "title": sized("ReportTitle", 32, alignment=TA_CENTER),
            "h1": sized("ReportH1", 24),
            "h2": sized("ReportH2", 20),
            "h3": sized("ReportH3", 16),
            "body": body,
        }

    def paragraph(self, text: Optional[str], style: str = "body") -> Paragraph:
        return Paragraph(paragraph_text(text), self.styles[style])

    def section_gap(self) -> Spacer:
        return Spacer(1, 0.5 * cm)

    def image(
        self, image_path: Union[str, Path], max_width: float, max_height: Optional[float] = None
    ) -> Optional[Image]:
        """JPEG re-encoded image scaled down to fit the box, or None when unreadable"""
        try:
            with PILImage.open(image_path) as source:
                rgb = source.convert("RGB")
                buffer = io.BytesIO()
                rgb.save(buffer, format="JPEG")
                width, height = rgb.size
        except OSError as e:
            logger.warning(f"Diagram image {image_path} could not be read: {e}")
            return None
        buffer.seek(0)
        if not width or not height:
            logger.warning(f"Diagram image {image_path} is empty")
            return None
        scale = min(1.0, max_width / float(width))
        if max_height is not None:
            scale = min(scale, max_height / float(height))
        return Image(buffer, width=width * scale, height=height * scale)

    def build(self, flowables: List[Flowable], target: Union[str, Path, io.BytesIO, None] = None) -> bytes:
        """Lay out the flowables; returns the PDF bytes (also written to `target` if a path)"""
        output = io.BytesIO() if target is None or isinstance(target, (str, Path)) else target
        doc = SimpleDocTemplate(
            output,
            pagesize=A4,
            leftMargin=PAGE_PADDING,
            rightMargin=PAGE_PADDING,
            topMargin=PAGE_PADDING,
            bottomMargin=PAGE_PADDING,
        )
        canvas_class = type("ReportCanvas", (NumberedCanvas,), {"font_name": self.font_name})
        doc.build(flowables, canvasmaker=canvas_class)
        data = output.getvalue()
        if isinstance(target, (str, Path)):
            Path(target).write_bytes(data)
        return data

    @property
    def frame_width(self) -> float:
        return A4[0] - 2 * (PAGE_PADDING + FRAME_PADDING)

    @property
    def frame_height(self) -> float:
        return A4[1] - 2 * (PAGE_PADDING + FRAME_PADDING)


def page_break() -> PageBreak:
    return PageBreak()
