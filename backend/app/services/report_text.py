"""
Text normalisation for long-form control text rendered into reports.

Control descriptions and implementation notes are authored as markdown-ish
text. Reports show them as plain paragraphs, so markup is reduced:

- heading lines (####, #####) lose their markers and stand alone between
  blank lines
- a line starting with a bold word (**Word**) loses the asterisks
- **Note** / **Note:** become Note / Note:
- runs of blank lines collapse to a single blank line

Rules are applied until the text stops changing, so normalising twice gives
the same result as normalising once.
"""
import re
from typing import Optional

_HEADING_LINE = re.compile(r"^[ \t]*#{4,}[ \t]*(.*)$", re.MULTILINE)
_BOLD_LINE_START = re.compile(r"^\*\*([A-Za-z0-9()]+)\*\*", re.MULTILINE)
_BOLD_NOTE_COLON = re.compile(r"\*\*Note:\*\*", re.IGNORECASE)
_BOLD_NOTE = re.compile(r"\*\*Note\*\*", re.IGNORECASE)
_BLANK_LINES = re.compile(r"\n{3,}")


def _apply_rules(text: str) -> str:
    text = _HEADING_LINE.sub(r"\n\1\n", text)
    text = _BOLD_LINE_START.sub(r"\1", text)
    text = _BOLD_NOTE_COLON.sub("Note:", text)
    text = _BOLD_NOTE.sub("Note", text)
    text = _BLANK_LINES.sub("\n\n", text)
    return text.strip("\n")


def normalize_control_text(text: Optional[str]) -> str:
    """Normalise a control description or implementation text"""
    if not text:
        return ""
    current = text.replace("\r\n", "\n").replace("\r", "\n")
    # Heading markers are consumed on the first pass; later passes only remove characters
    while True:
        updated = _apply_rules(current)
        if updated == current:
            return current
        current = updated


def normalize_parameters_text(text: Optional[str]) -> str:
    """Control parameters are shown without any asterisk markup"""
    if not text:
        return ""
    return text.replace("\r\n", "\n").replace("*", "")
