"""Renderers for DocumentModels: plain text and PDF.

Renderers only lay out what the model already contains; they never
recompute statistics. The ``{page}`` placeholder in footer fields is
replaced with the page number.
"""

import logging
from pathlib import Path
from textwrap import wrap
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.utils import simpleSplit
from reportlab.platypus import PageBreak as PdfPageBreak
from reportlab.platypus import Paragraph as PdfParagraph
from reportlab.platypus import SimpleDocTemplate, Spacer
from reportlab.platypus import Table as PdfTable
from reportlab.platypus import TableStyle

from council_reports.document import (
    DocumentModel,
    Heading,
    KeyValueBlock,
    PageBreak,
    Paragraph,
    SignatureBlock,
    Table,
)

logger = logging.getLogger(__name__)

TEXT_WIDTH = 78
PAGE_SEPARATOR = "\f"
SIGNATURE_LINE = "___________________________"


# ── Plain text ───────────────────────────────────────────────────────────

def _text_table(table: Table) -> list[str]:
    # Column widths in characters, proportional to the point hints.
    scale = TEXT_WIDTH / max(table.total_width, 1)
    widths = [max(4, int(w * scale) - 1) for w in table.col_widths]

    def line(cells, mark=" "):
        parts = [str(c)[:w].ljust(w) for c, w in zip(cells, widths)]
        return (mark + " " + " ".join(parts)).rstrip()

    lines = [line(table.header), "  " + "-" * (sum(widths) + len(widths) - 1)]
    for i, row in enumerate(table.rows):
        lines.append(line(row, "!" if i in table.flagged_rows else " "))
    if not table.rows:
        lines.append("  (none)")
    return lines


def render_text(doc: DocumentModel) -> str:
    """Render a document as plain text. Pages are separated by form feeds."""
    footer = doc.footer
    pages_out = []
    pages = doc.pages()
    for number, page in enumerate(pages, 1):
        lines: list[str] = []
        for section in page:
            if isinstance(section, Heading):
                text = section.text
                if section.align == "center":
                    text = text.center(TEXT_WIDTH).rstrip()
                lines.append(text)
                if section.level <= 2:
                    lines.append("=" * len(section.text) if section.level == 1 else "-" * len(section.text))
            elif isinstance(section, KeyValueBlock):
                for key, value in section.pairs:
                    lines.append(f"{key}: {value}")
                lines.append("")
            elif isinstance(section, Paragraph):
                pad = " " * (section.indent // 10)
                lines.extend(wrap(section.text, TEXT_WIDTH, initial_indent=pad,
                                  subsequent_indent=pad) or [""])
            elif isinstance(section, Table):
                lines.extend(_text_table(section))
                lines.append("")
            elif isinstance(section, SignatureBlock):
                lines.extend([section.label, "", SIGNATURE_LINE, section.name, section.title, ""])
        if footer:
            lines.append("")
            lines.append(" | ".join(f.format(page=number) for f in footer.fields))
        pages_out.append("\n".join(lines))
    return ("\n" + PAGE_SEPARATOR + "\n").join(pages_out) + "\n"


# ── PDF ──────────────────────────────────────────────────────────────────

NAVY = colors.HexColor("#1B2A4A")
ACCENT = colors.HexColor("#2563EB")
DARK_TEXT = colors.HexColor("#2D2D2D")
MED_TEXT = colors.HexColor("#555555")
LIGHT_BG = colors.HexColor("#F2F4F7")
RULE_COLOR = colors.HexColor("#CCCCCC")
OVERDUE_BG = colors.HexColor("#FDECEA")

_HEADING_STYLES = {
    1: ParagraphStyle("H1", fontName="Times-Bold", fontSize=22, textColor=NAVY,
                      leading=26, spaceAfter=4),
    2: ParagraphStyle("H2", fontName="Times-Bold", fontSize=14, textColor=NAVY,
                      leading=18, spaceBefore=10, spaceAfter=6),
    3: ParagraphStyle("H3", fontName="Times-Bold", fontSize=12, textColor=ACCENT,
                      leading=15, spaceBefore=6, spaceAfter=4),
}
_ALIGN = {"left": TA_LEFT, "center": TA_CENTER, "right": TA_RIGHT}

style_body = ParagraphStyle(
    "Body", fontName="Times-Roman", fontSize=12, textColor=DARK_TEXT,
    leading=15, spaceAfter=4,
)
style_small = ParagraphStyle(
    "Small", fontName="Times-Roman", fontSize=10, textColor=MED_TEXT,
    leading=12, spaceAfter=4,
)
style_label = ParagraphStyle(
    "Label", fontName="Times-Bold", fontSize=12, textColor=DARK_TEXT,
    leading=15, spaceBefore=6, spaceAfter=3,
)
style_table_header = ParagraphStyle(
    "TH", fontName="Times-Bold", fontSize=10, textColor=colors.white, leading=12,
)
style_table_cell = ParagraphStyle(
    "TD", fontName="Times-Roman", fontSize=9, textColor=DARK_TEXT, leading=11,
)
_PARAGRAPH_STYLES = {"body": style_body, "small": style_small, "label": style_label}


def _heading_style(section: Heading) -> ParagraphStyle:
    base = _HEADING_STYLES.get(section.level, _HEADING_STYLES[3])
    return ParagraphStyle(f"{base.name}-{section.align}", parent=base,
                          alignment=_ALIGN.get(section.align, TA_LEFT))


def _pdf_table(section: Table, max_width: float) -> PdfTable:
    scale = min(1.0, max_width / max(section.total_width, 1))
    widths = [w * scale for w in section.col_widths]
    data = [[PdfParagraph(escape(h), style_table_header) for h in section.header]]
    for row in section.rows:
        data.append([PdfParagraph(escape(c), style_table_cell) for c in row])
    table = PdfTable(data, colWidths=widths, repeatRows=1)
    commands = [
        ("BACKGROUND", (0, 0), (-1, 0), NAVY),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT_BG]),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LINEBELOW", (0, 0), (-1, -1), 0.5, RULE_COLOR),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]
    for i in section.flagged_rows:
        commands.append(("BACKGROUND", (0, i + 1), (-1, i + 1), OVERDUE_BG))
    table.setStyle(TableStyle(commands))
    return table


def _key_value_table(section: KeyValueBlock, width: float) -> PdfTable:
    cells = [
        PdfParagraph(f"<b>{escape(k)}:</b> {escape(v)}", style_body)
        for k, v in section.pairs
    ]
    cols = max(1, section.columns)
    rows = [cells[i:i + cols] for i in range(0, len(cells), cols)]
    if rows and len(rows[-1]) < cols:
        rows[-1] = rows[-1] + [""] * (cols - len(rows[-1]))
    table = PdfTable(rows or [[""]], colWidths=[width / cols] * cols)
    table.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
    ]))
    return table


def build_story(doc: DocumentModel, width: float) -> list:
    """Convert document sections to reportlab flowables."""
    story = []
    for section in doc.sections:
        if isinstance(section, Heading):
            story.append(PdfParagraph(escape(section.text), _heading_style(section)))
        elif isinstance(section, KeyValueBlock):
            story.append(_key_value_table(section, width))
            story.append(Spacer(1, 6))
        elif isinstance(section, Paragraph):
            style = _PARAGRAPH_STYLES.get(section.style, style_body)
            if section.indent:
                style = ParagraphStyle(f"{style.name}-{section.indent}", parent=style,
                                       leftIndent=section.indent)
            story.append(PdfParagraph(escape(section.text), style))
        elif isinstance(section, Table):
            story.append(_pdf_table(section, width))
            story.append(Spacer(1, 8))
        elif isinstance(section, PageBreak):
            story.append(PdfPageBreak())
        elif isinstance(section, SignatureBlock):
            story.append(PdfParagraph(escape(section.label), style_label))
            story.append(Spacer(1, 36))
            story.append(PdfParagraph(SIGNATURE_LINE, style_body))
            story.append(PdfParagraph(escape(section.name), style_body))
            story.append(PdfParagraph(escape(section.title), style_small))
            story.append(Spacer(1, 12))
    return story


def render_pdf(doc: DocumentModel, path: Path) -> Path:
    """Render a document to an A4 PDF at ``path``.

    Returns:
        Path to the written PDF.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pdf = SimpleDocTemplate(
        str(path), pagesize=A4, title=doc.title,
        topMargin=0.7 * inch, bottomMargin=0.9 * inch,
        leftMargin=0.7 * inch, rightMargin=0.7 * inch,
    )
    footer = doc.footer

    def draw_footer(canvas, template):
        if not footer:
            return
        canvas.saveState()
        canvas.setFont("Times-Roman", 8)
        canvas.setFillColor(MED_TEXT)
        text = "   |   ".join(f.format(page=canvas.getPageNumber()) for f in footer.fields)
        for offset, line in enumerate(simpleSplit(text, "Times-Roman", 8, template.width)):
            canvas.drawCentredString(A4[0] / 2, 0.5 * inch - offset * 10, line)
        canvas.restoreState()

    pdf.build(build_story(doc, pdf.width), onFirstPage=draw_footer, onLaterPages=draw_footer)
    logger.info(f"Rendered {doc.kind.value} PDF to {path}")
    return path
